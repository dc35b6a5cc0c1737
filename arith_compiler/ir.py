"""
Stack-machine IR for the arithmetic expression compiler.

The IR is a flat postfix encoding of the AST: PUSH places a literal on
the stack, ADD/SUB/MUL/DIV pop the right operand, then the left
operand, and push the result. There are no labels, jumps or registers.

Lowering is a post-order walk, left subtree before right, so the left
operand of a non-commutative operator is always the deeper of the two
stack entries when the operator runs.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .ast_nodes import ASTNode, Number

logger = logging.getLogger(__name__)


class Opcode(enum.Enum):
    PUSH = "PUSH"
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"


OPERATOR_OPCODES: Dict[str, Opcode] = {
    "+": Opcode.ADD,
    "-": Opcode.SUB,
    "*": Opcode.MUL,
    "/": Opcode.DIV,
}


@dataclass(frozen=True)
class Instruction:
    opcode: Opcode
    operand: Optional[int] = None   # PUSH only

    def __str__(self) -> str:
        if self.opcode == Opcode.PUSH:
            return f"PUSH {self.operand}"
        return self.opcode.value


def push(value: int) -> Instruction:
    return Instruction(Opcode.PUSH, value)


ADD = Instruction(Opcode.ADD)
SUB = Instruction(Opcode.SUB)
MUL = Instruction(Opcode.MUL)
DIV = Instruction(Opcode.DIV)


def lower(ast: ASTNode) -> List[Instruction]:
    """Lower an expression tree to IR in post-order.

    Uses an explicit work stack; each BinaryOp is visited twice, once to
    schedule its children and once (after both are emitted) to emit its
    own opcode.
    """
    out: List[Instruction] = []
    work = [(ast, False)]
    while work:
        node, children_done = work.pop()
        if isinstance(node, Number):
            out.append(push(node.value))
        elif children_done:
            out.append(Instruction(OPERATOR_OPCODES[node.op]))
        else:
            work.append((node, True))
            work.append((node.right, False))
            work.append((node.left, False))
    logger.debug("Lowered AST to %d IR instructions", len(out))
    return out


def format_ir(instructions: List[Instruction]) -> str:
    """Render IR one instruction per line (PUSH 5 / ADD ...)."""
    return "\n".join(str(instr) for instr in instructions)
