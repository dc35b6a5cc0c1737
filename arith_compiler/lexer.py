"""
Lexer / Tokenizer for the arithmetic expression compiler.

Converts source text into a list of tokens for the parser.
Recognizes decimal integer literals, the four arithmetic operators
and parentheses. Whitespace is skipped; anything else is an error.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Dict, List

from .errors import CompileError

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    # Literal
    NUMBER = "NUMBER"

    # Operators
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"

    # Punctuation
    LPAREN = "("
    RPAREN = ")"

    # Special
    EOF = "EOF"


# ──────────────────────────────────────────────
# Token data class
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str | int
    line: int
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


SINGLE_CHAR_OPS: Dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}

WHITESPACE = " \t\r\n"
DIGITS = "0123456789"

# Literals are 32-bit signed; the accumulator wraps like the machine word does.
INT32_MASK = (1 << 32) - 1


def wrap_int32(value: int) -> int:
    """Reduce an integer to signed 32-bit two's complement."""
    value &= INT32_MASK
    return value - (1 << 32) if value > 0x7FFFFFFF else value


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class LexErrorKind(enum.Enum):
    UNEXPECTED_CHARACTER = "unexpected character"


class LexerError(CompileError):
    def __init__(self, kind: LexErrorKind, char: str, line: int, col: int):
        self.kind = kind
        self.char = char
        super().__init__(f"Lexer error at L{line}:{col}: Unexpected character: {char!r}",
                         line, col)


class Lexer:
    """Tokenizes expression source into a list of Tokens."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: List[Token] = []

    def _peek(self) -> str:
        return self.source[self.pos] if self.pos < len(self.source) else "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_whitespace(self):
        while self.pos < len(self.source) and self.source[self.pos] in WHITESPACE:
            self._advance()

    def _read_number(self) -> Token:
        start_line, start_col = self.line, self.col
        start_pos = self.pos
        value = 0
        wrapped = False
        while self.pos < len(self.source) and self.source[self.pos] in DIGITS:
            raw = value * 10 + (ord(self._advance()) - ord("0"))
            value = wrap_int32(raw)
            wrapped = wrapped or value != raw
        if wrapped:
            logger.warning("Integer literal %s at L%d:%d overflows 32 bits, wrapped to %d",
                           self.source[start_pos:self.pos], start_line, start_col, value)
        return Token(TokenType.NUMBER, value, start_line, start_col)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return a list of tokens ending in EOF."""
        self.tokens = []

        while self.pos < len(self.source):
            self._skip_whitespace()
            if self.pos >= len(self.source):
                break

            ch = self._peek()

            if ch in DIGITS:
                self.tokens.append(self._read_number())
                continue

            if ch in SINGLE_CHAR_OPS:
                start_line, start_col = self.line, self.col
                self._advance()
                self.tokens.append(Token(SINGLE_CHAR_OPS[ch], ch, start_line, start_col))
                continue

            raise LexerError(LexErrorKind.UNEXPECTED_CHARACTER, ch, self.line, self.col)

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        logger.debug("Lexed %d tokens", len(self.tokens) - 1)
        return self.tokens


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()


def detokenize(tokens: List[Token]) -> str:
    """Serialize tokens back to source text with no whitespace."""
    parts = []
    for tok in tokens:
        if tok.type == TokenType.EOF:
            continue
        if tok.type == TokenType.NUMBER:
            parts.append(str(tok.value))
        else:
            parts.append(tok.type.value)
    return "".join(parts)
