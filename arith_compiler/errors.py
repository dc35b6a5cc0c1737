"""
Error hierarchy shared by the compiler stages.

Everything caused by invalid source text derives from CompileError, so a
driver can tell "the expression was wrong" apart from a failure of the
external toolchain (ToolchainError, in toolchain.py) or of the generated
program itself (ArithmeticTrap).
"""

from __future__ import annotations
import enum
from typing import Optional


class CompileError(Exception):
    """Base class for lexer and parser failures."""

    def __init__(self, message: str, line: int = 0, col: int = 0):
        self.line = line
        self.col = col
        super().__init__(message)


class TrapKind(enum.Enum):
    DIVIDE_BY_ZERO = "divide by zero"
    DIVIDE_OVERFLOW = "quotient overflow"


class ArithmeticTrap(Exception):
    """Run-time trap of the generated program.

    The compiler never raises this. A DIV whose divisor is zero is emitted
    unchanged and the x86-64 IDIV instruction faults (SIGFPE) when the
    executable runs. The stack VM raises ArithmeticTrap at the same point
    so the behavior can be observed without assembling anything.

    index is the position of the faulting DIV in the IR, or None when the
    trap came from evaluating a tree directly.
    """

    def __init__(self, kind: TrapKind, index: Optional[int] = None):
        self.kind = kind
        self.index = index
        if index is None:
            super().__init__(f"Arithmetic trap: {kind.value}")
        else:
            super().__init__(f"Arithmetic trap at IR #{index}: {kind.value}")


class VMError(Exception):
    """Malformed IR handed to the stack VM (stack underflow or leftovers)."""
