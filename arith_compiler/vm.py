"""
Reference stack machine for the compiler's IR and AST.

Executes IR the way the generated x86-64 program does: 64-bit
two's-complement values, wrapping add/sub/mul, signed division
truncating toward zero, and a trap where IDIV would fault. Used by the
test suite to check lowering against direct evaluation, and by the CLI
`--run` flag to preview a program's output without nasm/ld.
"""

from __future__ import annotations
import logging
from typing import List, Optional

from .ast_nodes import ASTNode, Number
from .errors import ArithmeticTrap, TrapKind, VMError
from .ir import OPERATOR_OPCODES, Instruction, Opcode

logger = logging.getLogger(__name__)

WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1
INT64_MIN = -(1 << (WORD_BITS - 1))


def wrap_int64(value: int) -> int:
    value &= WORD_MASK
    return value - (1 << WORD_BITS) if value >> (WORD_BITS - 1) else value


def trunc_div(left: int, right: int) -> int:
    """Signed division rounding toward zero, as IDIV does."""
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def apply_binary(opcode: Opcode, left: int, right: int,
                 index: Optional[int] = None) -> int:
    """Apply one binary opcode to (left, right); index is for trap reports."""
    if opcode == Opcode.ADD:
        return wrap_int64(left + right)
    if opcode == Opcode.SUB:
        return wrap_int64(left - right)
    if opcode == Opcode.MUL:
        return wrap_int64(left * right)
    if opcode == Opcode.DIV:
        if right == 0:
            raise ArithmeticTrap(TrapKind.DIVIDE_BY_ZERO, index)
        if left == INT64_MIN and right == -1:
            raise ArithmeticTrap(TrapKind.DIVIDE_OVERFLOW, index)
        return trunc_div(left, right)
    raise VMError(f"Not a binary opcode: {opcode.name}")


def format_output(value: int) -> str:
    """Text print_int writes for value: unsigned 64-bit decimal."""
    return str(value & WORD_MASK)


class StackMachine:
    """Runs a list of IR instructions on a value stack."""

    def __init__(self):
        self.stack: List[int] = []
        self.steps = 0
        self.output = ""

    def run(self, ir: List[Instruction]) -> int:
        self.stack = []
        self.steps = 0
        self.output = ""

        for index, instr in enumerate(ir):
            self.step(instr, index)

        if len(self.stack) != 1:
            raise VMError(f"Program ended with {len(self.stack)} values on the stack, expected 1")
        result = self.stack[0]
        self.output = format_output(result)
        logger.debug("Executed %d instructions, result %d", self.steps, result)
        return result

    def step(self, instr: Instruction, index: int = 0):
        self.steps += 1
        if instr.opcode == Opcode.PUSH:
            self.stack.append(wrap_int64(instr.operand))
            return
        if len(self.stack) < 2:
            raise VMError(f"Stack underflow at IR #{index} ({instr})")
        right = self.stack.pop()
        left = self.stack.pop()
        self.stack.append(apply_binary(instr.opcode, left, right, index))


def run(ir: List[Instruction]) -> int:
    return StackMachine().run(ir)


def evaluate(ast: ASTNode) -> int:
    """Evaluate a tree directly, left operand before right."""
    values: List[int] = []
    work = [(ast, False)]
    while work:
        node, children_done = work.pop()
        if isinstance(node, Number):
            values.append(wrap_int64(node.value))
        elif children_done:
            right = values.pop()
            left = values.pop()
            values.append(apply_binary(OPERATOR_OPCODES[node.op], left, right))
        else:
            work.append((node, True))
            work.append((node.right, False))
            work.append((node.left, False))
    return values[0]
