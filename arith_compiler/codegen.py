"""
x86-64 Code Generator for the arithmetic expression compiler.

Translates the stack-machine IR into NASM assembly for Linux.

Register usage convention:
  - The hardware stack (RSP) is the IR value stack, one qword per entry
  - RAX: left operand and result of each binary operation
  - RBX: right operand
  - RDX: sign extension of RAX before IDIV (CQO)
  - RDI: final value handed to print_int

Program layout:
  - _start: the translated IR, then print_int on the single remaining
    value, then the exit syscall with status 0
  - print_int: unsigned decimal conversion onto the stack and one
    write(1, ...) syscall

Known gaps:
  - DIV has no zero check. A zero divisor makes IDIV raise #DE and the
    process dies with SIGFPE (see errors.ArithmeticTrap).
  - print_int divides unsigned, so a negative result prints as its
    2**64 complement.

print_int must release the digits and the whole padding qword before
`ret`, otherwise `ret` pops a corrupted return address and the exit
syscall is never reached. The digit count is taken from RDX after the
write syscall because `syscall` overwrites RCX (return RIP) and R11
(RFLAGS).
"""

from __future__ import annotations
import logging
from typing import List

from .ir import Instruction, Opcode

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Target profiles
# ──────────────────────────────────────────────

DEFAULT_TARGET = "linux_x86_64"

TARGET_PROFILES = {
    "linux_x86_64": {
        "obj_format": "elf64",
        "entry": "_start",
        "sys_write": 1,
        "sys_exit": 60,
        "stdout_fd": 1,
        "description": "Linux x86-64 (NASM elf64, raw syscalls)",
    },
}

INDENT = "    "

# Operand order is right in RBX, left in RAX.
_BINARY_OPS = {
    Opcode.ADD: ["add rax, rbx"],
    Opcode.SUB: ["sub rax, rbx"],
    Opcode.MUL: ["imul rbx"],
    Opcode.DIV: ["cqo", "idiv rbx"],
}


class CodeGenerator:
    """Generates NASM x86-64 assembly lines from IR."""

    def __init__(self, target: str = DEFAULT_TARGET):
        if target not in TARGET_PROFILES:
            logger.warning("Unknown target %r, using %s", target, DEFAULT_TARGET)
            target = DEFAULT_TARGET
        self.target = target
        self.profile = TARGET_PROFILES[target]
        self._lines: List[str] = []

    # ── Output helpers ────────────────────────

    def _emit(self, line: str):
        """Emit one instruction, indented."""
        self._lines.append(f"{INDENT}{line}")

    def _emit_label(self, label: str):
        self._lines.append(f"{label}:")

    def _emit_directive(self, line: str):
        self._lines.append(line)

    # ── Main generation entry point ───────────

    def generate(self, ir: List[Instruction]) -> List[str]:
        """Generate the complete program as a list of assembly lines."""
        self._lines = []
        self._gen_header()
        for instr in ir:
            self._gen_instruction(instr)
        self._gen_exit()
        self._gen_print_int()
        logger.debug("Emitted %d assembly lines for %d IR instructions",
                     len(self._lines), len(ir))
        return list(self._lines)

    def _gen_header(self):
        entry = self.profile["entry"]
        self._emit_directive(f"global {entry}")
        self._emit_directive("section .text")
        self._emit_label(entry)

    def _gen_instruction(self, instr: Instruction):
        if instr.opcode == Opcode.PUSH:
            self._emit(f"push {instr.operand}")
            return
        self._emit("pop rbx")
        self._emit("pop rax")
        for line in _BINARY_OPS[instr.opcode]:
            self._emit(line)
        self._emit("push rax")

    def _gen_exit(self):
        self._emit("pop rdi")
        self._emit("call print_int")
        self._emit(f"mov rax, {self.profile['sys_exit']}")
        self._emit("xor rdi, rdi")
        self._emit("syscall")

    def _gen_print_int(self):
        """print_int(rdi): write the unsigned decimal form of rdi to stdout.

        Digits are produced least significant first and stored at
        decreasing addresses below RSP, so the buffer reads most
        significant first. RCX counts the digits and is copied to RDX
        for the write; RDX survives the syscall and sizes the cleanup.
        The loop body runs at least once, which is what makes 0 print
        as "0".
        """
        self._emit_label("print_int")
        self._emit("mov rax, rdi")
        self._emit("mov rcx, 0")
        self._emit("mov rbx, 10")
        self._emit("push 0")
        self._emit_label("divide_loop")
        self._emit("xor rdx, rdx")
        self._emit("div rbx")
        self._emit("add dl, '0'")
        self._emit("dec rsp")
        self._emit("mov [rsp], dl")
        self._emit("inc rcx")
        self._emit("test rax, rax")
        self._emit("jnz divide_loop")
        self._emit(f"mov rax, {self.profile['sys_write']}")
        self._emit(f"mov rdi, {self.profile['stdout_fd']}")
        self._emit("mov rsi, rsp")
        self._emit("mov rdx, rcx")
        self._emit("syscall")
        # syscall clobbers RCX and R11; RDX still holds the digit count
        self._emit("add rsp, rdx")
        # release the qword pushed as padding, RSP is back on the return address
        self._emit("add rsp, 8")
        self._emit("ret")


def emit(ir: List[Instruction], target: str = DEFAULT_TARGET) -> List[str]:
    return CodeGenerator(target=target).generate(ir)
