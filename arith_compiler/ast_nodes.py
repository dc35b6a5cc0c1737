"""
AST Node definitions for the arithmetic expression compiler.

Defines the Abstract Syntax Tree produced by the parser and consumed
by the IR generator. The tree is strictly binary: integer literals at
the leaves, one BinaryOp per operator application. Nodes are never
shared between parents.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, Tuple, Union


OPERATORS = ("+", "-", "*", "/")


# ──────────────────────────────────────────────
# Base AST node
# ──────────────────────────────────────────────

@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    line: int = 0
    col: int = 0


# ──────────────────────────────────────────────
# Expressions
# ──────────────────────────────────────────────

@dataclass
class Number(ASTNode):
    value: int = 0


@dataclass
class BinaryOp(ASTNode):
    """Binary arithmetic: left op right."""
    op: str = "+"                   # one of OPERATORS
    left: Expression = field(default_factory=Number)
    right: Expression = field(default_factory=Number)


Expression = Union[Number, BinaryOp]


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Yield every node of the tree, parents before children."""
    stack = [node]
    while stack:
        cur = stack.pop()
        yield cur
        if isinstance(cur, BinaryOp):
            stack.append(cur.right)
            stack.append(cur.left)


def count_nodes(node: ASTNode) -> Tuple[int, int]:
    """Return (number_leaves, binary_ops) for a tree."""
    leaves = ops = 0
    for n in walk(node):
        if isinstance(n, BinaryOp):
            ops += 1
        else:
            leaves += 1
    return leaves, ops


def to_source(node: ASTNode) -> str:
    """Render a tree fully parenthesized, e.g. ((8-3)-2)."""
    rendered = []
    stack = [(node, False)]
    while stack:
        cur, children_done = stack.pop()
        if isinstance(cur, Number):
            rendered.append(str(cur.value))
        elif children_done:
            right = rendered.pop()
            left = rendered.pop()
            rendered.append(f"({left}{cur.op}{right})")
        else:
            stack.append((cur, True))
            stack.append((cur.right, False))
            stack.append((cur.left, False))
    return rendered[0]
