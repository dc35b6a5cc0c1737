"""
arithc - arithmetic expression compiler for x86-64 Linux
=========================================================
Compiles one integer expression (+ - * /, parentheses) to NASM assembly
for a stack machine that prints the result and exits.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────┐
    │  Source  │───>│  Lexer   │───>│  Parser  │───>│    IR    │───>│  CodeGen  │
    │  (text)  │    │ (tokens) │    │  (AST)   │    │ (postfix)│    │ (asm text)│
    └──────────┘    └──────────┘    └──────────┘    └──────────┘    └───────────┘

    - lexer.py:     character scanner, 32-bit decimal literals
    - parser.py:    precedence grammar on an explicit frame stack
    - ast_nodes.py: Number / BinaryOp dataclasses
    - ir.py:        post-order lowering to PUSH/ADD/SUB/MUL/DIV
    - codegen.py:   IR -> NASM lines, plus the print_int routine
    - vm.py:        reference interpreter for IR and AST
    - toolchain.py: nasm + ld driver (outside the compile pipeline)
"""

__version__ = "0.1.0"

from typing import List

from .errors import ArithmeticTrap, CompileError, TrapKind, VMError
from .lexer import Lexer, LexerError, LexErrorKind, Token, TokenType, tokenize, detokenize
from .ast_nodes import ASTNode, BinaryOp, Number
from .parser import DEFAULT_MAX_DEPTH, ParseError, ParseErrorKind, Parser, parse
from .ir import Instruction, Opcode, format_ir, lower
from .codegen import DEFAULT_TARGET, TARGET_PROFILES, CodeGenerator, emit
from .vm import StackMachine, evaluate

OUTPUT_FORMATS = ("asm", "ir", "tokens")


def compile_to_ir(source: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> List[Instruction]:
    """Run the front half of the pipeline: Lexer -> Parser -> IR."""
    tokens = tokenize(source)
    ast = parse(tokens, max_depth=max_depth)
    return lower(ast)


def compile_source(source: str, *, target: str = DEFAULT_TARGET,
                   output: str = "asm", max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Compile an expression to assembly text, textual IR, or a token dump.

    Full pipeline: Lexer -> Parser -> AST -> IR -> CodeGenerator.

    Args:
        source: expression source text.
        target: key of codegen.TARGET_PROFILES.
        output: 'asm' (default), 'ir' or 'tokens'.
        max_depth: parenthesis nesting limit handed to the parser.

    Raises:
        LexerError / ParseError (both CompileError) on invalid input.
        ValueError for an unknown output, before the source is read.
        Nothing is returned on failure.
    """
    if output not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {output!r}")
    if output == "tokens":
        return "\n".join(repr(tok) for tok in tokenize(source))

    ir = compile_to_ir(source, max_depth=max_depth)
    if output == "ir":
        return format_ir(ir)

    return "\n".join(emit(ir, target=target))
