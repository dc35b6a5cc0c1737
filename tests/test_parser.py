"""
Parser tests: precedence, associativity, parentheses, error kinds
and deep nesting.
"""

import pytest
from arith_compiler.ast_nodes import BinaryOp, Number, count_nodes, to_source
from arith_compiler.lexer import tokenize
from arith_compiler.parser import ParseError, ParseErrorKind, Parser, parse


def _parse(source: str, **kwargs):
    return parse(tokenize(source), **kwargs)


def _shape(source: str) -> str:
    return to_source(_parse(source))


def _error_kind(source: str) -> ParseErrorKind:
    with pytest.raises(ParseError) as exc:
        _parse(source)
    return exc.value.kind


# ─── Structure ─────────────────────────────

class TestStructure:
    def test_single_number(self):
        ast = _parse("7")
        assert isinstance(ast, Number)
        assert ast.value == 7

    def test_binary_node(self):
        ast = _parse("1+2")
        assert isinstance(ast, BinaryOp)
        assert ast.op == "+"
        assert ast.left == Number(value=1, line=1, col=1)
        assert ast.right == Number(value=2, line=1, col=3)

    def test_operator_position_recorded(self):
        ast = _parse("10 * 3")
        assert (ast.line, ast.col) == (1, 4)

    def test_node_counts(self):
        leaves, ops = count_nodes(_parse("(1+2)*(3-4)/5"))
        assert (leaves, ops) == (5, 4)


class TestPrecedence:
    def test_mul_binds_tighter_than_add(self):
        assert _shape("2+3*4") == "(2+(3*4))"

    def test_div_binds_tighter_than_sub(self):
        assert _shape("9-6/3") == "(9-(6/3))"

    def test_mul_first_then_add(self):
        assert _shape("2*3+4") == "((2*3)+4)"

    def test_parentheses_override(self):
        assert _shape("(2+3)*4") == "((2+3)*4)"

    def test_redundant_parentheses(self):
        assert _shape("((5))") == "5"


class TestAssociativity:
    def test_subtraction_is_left_associative(self):
        assert _shape("8-3-2") == "((8-3)-2)"

    def test_division_is_left_associative(self):
        assert _shape("64/4/2") == "((64/4)/2)"

    def test_mixed_same_level(self):
        assert _shape("1-2+3-4") == "(((1-2)+3)-4)"
        assert _shape("2*6/3*5") == "(((2*6)/3)*5)"


# ─── Errors ────────────────────────────────

class TestParseErrors:
    def test_missing_close_paren(self):
        assert _error_kind("(1+2") == ParseErrorKind.UNBALANCED_PARENTHESIS

    def test_extra_close_paren(self):
        assert _error_kind("1+2)") == ParseErrorKind.UNBALANCED_PARENTHESIS

    def test_empty_input(self):
        assert _error_kind("") == ParseErrorKind.UNEXPECTED_END

    def test_trailing_operator(self):
        assert _error_kind("1+") == ParseErrorKind.UNEXPECTED_END

    def test_leading_operator(self):
        # no unary minus
        assert _error_kind("-1") == ParseErrorKind.UNEXPECTED_TOKEN

    def test_double_operator(self):
        assert _error_kind("1+*2") == ParseErrorKind.UNEXPECTED_TOKEN

    def test_empty_parentheses(self):
        assert _error_kind("()") == ParseErrorKind.UNEXPECTED_TOKEN

    def test_two_numbers(self):
        assert _error_kind("1 2") == ParseErrorKind.UNEXPECTED_TOKEN

    def test_implicit_multiplication(self):
        assert _error_kind("2(3)") == ParseErrorKind.UNEXPECTED_TOKEN
        assert _error_kind("(2)(3)") == ParseErrorKind.UNEXPECTED_TOKEN

    def test_error_reports_token_location(self):
        with pytest.raises(ParseError) as exc:
            _parse("1 + + 2")
        assert (exc.value.line, exc.value.col) == (1, 5)
        assert "L1:5" in str(exc.value)

    def test_missing_paren_names_opener(self):
        with pytest.raises(ParseError, match=r"'\(' at L1:3"):
            _parse("1*(2+3")


# ─── Deep nesting ──────────────────────────

class TestDeepNesting:
    def test_thousand_nested_additions(self):
        n = 1000
        source = "(" * n + "1" + "+1)" * n
        ast = _parse(source)
        leaves, ops = count_nodes(ast)
        assert (leaves, ops) == (n + 1, n)

    def test_long_flat_chain(self):
        source = "+".join(["1"] * 5000)
        leaves, ops = count_nodes(_parse(source))
        assert (leaves, ops) == (5000, 4999)

    def test_depth_limit(self):
        with pytest.raises(ParseError) as exc:
            _parse("(((1)))", max_depth=2)
        assert exc.value.kind == ParseErrorKind.NESTING_TOO_DEEP

    def test_depth_at_limit_is_accepted(self):
        assert isinstance(_parse("((1))", max_depth=2), Number)


class TestTokenHandling:
    def test_tokens_not_consumed(self):
        tokens = tokenize("1+2")
        before = list(tokens)
        Parser(tokens).parse()
        assert tokens == before

    def test_missing_eof_is_tolerated(self):
        tokens = tokenize("3*4")[:-1]
        assert to_source(parse(tokens)) == "(3*4)"
