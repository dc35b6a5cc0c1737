"""
Parser for the arithmetic expression compiler.

Parses a token list from the Lexer into an AST defined in ast_nodes,
following the grammar (lowest to highest precedence):

    expression := term ( ('+' | '-') term )*
    term       := factor ( ('*' | '/') factor )*
    factor     := NUMBER | '(' expression ')'

Both binary levels are left-associative: 8-3-2 parses as (8-3)-2.

The productions are run on an explicit stack of frames, one frame per
open parenthesis, instead of on the Python call stack. Each frame holds
the partially built expression and term for its nesting level, so a
deeply nested input costs one list entry per level rather than three
interpreter frames. Depth is capped by Parser.max_depth.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from .errors import CompileError
from .lexer import Token, TokenType
from .ast_nodes import ASTNode, BinaryOp, Number

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10_000

ADDITIVE = (TokenType.PLUS, TokenType.MINUS)
MULTIPLICATIVE = (TokenType.STAR, TokenType.SLASH)


class ParseErrorKind(enum.Enum):
    UNEXPECTED_TOKEN = "unexpected token"
    UNEXPECTED_END = "unexpected end of input"
    UNBALANCED_PARENTHESIS = "unbalanced parenthesis"
    NESTING_TOO_DEEP = "nesting too deep"


class ParseError(CompileError):
    def __init__(self, kind: ParseErrorKind, message: str, token: Token):
        self.kind = kind
        self.token = token
        loc = f"L{token.line}:{token.col}"
        got = "end of input" if token.type == TokenType.EOF else f"{token.type.name} = {token.value!r}"
        super().__init__(f"Parse error at {loc}: {message} (got {got})",
                         token.line, token.col)


@dataclass
class _Frame:
    """Partial state of one parenthesis level.

    expr/add_op is the running `term (('+'|'-') term)*` fold,
    term/mul_op the running `factor (('*'|'/') factor)*` fold.
    """
    open_paren: Optional[Token] = None
    expr: Optional[ASTNode] = None
    add_op: Optional[Token] = None
    term: Optional[ASTNode] = None
    mul_op: Optional[Token] = None

    def push_factor(self, node: ASTNode):
        if self.mul_op is not None:
            tok = self.mul_op
            node = BinaryOp(op=tok.value, left=self.term, right=node,
                            line=tok.line, col=tok.col)
            self.mul_op = None
        self.term = node

    def close_term(self):
        node = self.term
        if self.add_op is not None:
            tok = self.add_op
            node = BinaryOp(op=tok.value, left=self.expr, right=node,
                            line=tok.line, col=tok.col)
            self.add_op = None
        self.expr = node
        self.term = None

    def finish(self) -> ASTNode:
        self.close_term()
        return self.expr


class Parser:
    """Grammar-driven parser producing an AST from tokens."""

    def __init__(self, tokens: List[Token], max_depth: int = DEFAULT_MAX_DEPTH):
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1] if tokens else None
            eof = Token(TokenType.EOF, "", last.line if last else 1,
                        last.col + 1 if last else 1)
            tokens = list(tokens) + [eof]
        self.tokens = tokens
        self.max_depth = max_depth
        self.pos = 0

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _at(self, *types: TokenType) -> bool:
        return self._cur().type in types

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    # ── Entry point ─────────────────────────

    def parse(self) -> ASTNode:
        """Parse the full token list into a single expression tree."""
        frames: List[_Frame] = [_Frame()]

        while True:
            # factor position
            tok = self._cur()
            if self._at(TokenType.NUMBER):
                self._advance()
                frames[-1].push_factor(Number(value=tok.value, line=tok.line, col=tok.col))
            elif self._at(TokenType.LPAREN):
                if len(frames) > self.max_depth:
                    raise ParseError(ParseErrorKind.NESTING_TOO_DEEP,
                                     f"Parentheses nested deeper than {self.max_depth}", tok)
                self._advance()
                frames.append(_Frame(open_paren=tok))
                continue
            elif self._at(TokenType.EOF):
                raise ParseError(ParseErrorKind.UNEXPECTED_END, "Expected number or '('", tok)
            else:
                raise ParseError(ParseErrorKind.UNEXPECTED_TOKEN, "Expected number or '('", tok)

            # operator position: close as many ')' as follow, then need an operator
            while self._at(TokenType.RPAREN):
                tok = self._advance()
                if len(frames) == 1:
                    raise ParseError(ParseErrorKind.UNBALANCED_PARENTHESIS,
                                     "Unmatched ')'", tok)
                inner = frames.pop().finish()
                frames[-1].push_factor(inner)

            tok = self._cur()
            if self._at(*MULTIPLICATIVE):
                frames[-1].mul_op = self._advance()
            elif self._at(*ADDITIVE):
                frames[-1].close_term()
                frames[-1].add_op = self._advance()
            elif self._at(TokenType.EOF):
                break
            else:
                raise ParseError(ParseErrorKind.UNEXPECTED_TOKEN,
                                 "Expected operator or end of input", tok)

        if len(frames) > 1:
            opener = frames[-1].open_paren
            raise ParseError(ParseErrorKind.UNBALANCED_PARENTHESIS,
                             f"Missing ')' for '(' at L{opener.line}:{opener.col}", self._cur())

        ast = frames[0].finish()
        logger.debug("Parsed %d tokens into AST", len(self.tokens) - 1)
        return ast


def parse(tokens: List[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> ASTNode:
    return Parser(tokens, max_depth=max_depth).parse()
