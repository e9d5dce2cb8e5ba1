"""Tests for the expression parser and static analysis of expressions."""

import pytest

from appdom._errors import EvaluationError, ExpressionSyntaxError
from appdom._expr import UNDEFINED, parse, referenced_paths
from appdom._expr._ast import (
    Arrow,
    Binary,
    Call,
    Chain,
    Conditional,
    Identifier,
    Literal,
    Logical,
    Member,
    TemplateLiteral,
    Unary,
)
from appdom._expr._lexer import TokenKind, tokenize


class TestLexer:
    """Tests for tokenize."""

    def test_numbers(self) -> None:
        values = [t.value for t in tokenize("1 2.5 0x1F .5 1e3") if t.kind == TokenKind.NUMBER]
        assert values == [1, 2.5, 31, 0.5, 1000]

    def test_string_escapes(self) -> None:
        (token, _eof) = tokenize(r"'a\nb\u0041'")
        assert token.value == "a\nbA"

    def test_optional_chain_before_digit_is_conditional(self) -> None:
        kinds = [t.value for t in tokenize("a?.5:1") if t.kind == TokenKind.PUNCTUATOR]
        assert kinds == ["?", ":"]

    def test_unterminated_string(self) -> None:
        with pytest.raises(ExpressionSyntaxError, match="Unterminated string literal"):
            tokenize("'abc")

    def test_unexpected_character(self) -> None:
        with pytest.raises(ExpressionSyntaxError, match="Unexpected character"):
            tokenize("a # b")


class TestParse:
    """Tests for the syntax trees produced by parse."""

    def test_precedence(self) -> None:
        assert parse("1 + 2 * 3") == Binary("+", Literal(1), Binary("*", Literal(2), Literal(3)))

    def test_left_associativity(self) -> None:
        assert parse("1 - 2 - 3") == Binary("-", Binary("-", Literal(1), Literal(2)), Literal(3))

    def test_power_is_right_associative(self) -> None:
        assert parse("2 ** 3 ** 2") == Binary("**", Literal(2), Binary("**", Literal(3), Literal(2)))

    def test_parenthesized_unary_power_operand(self) -> None:
        assert parse("(-2) ** 2") == Binary("**", Unary("-", Literal(2)), Literal(2))
        assert parse("-(2 ** 2)") == Unary("-", Binary("**", Literal(2), Literal(2)))
        assert parse("2 ** -1") == Binary("**", Literal(2), Unary("-", Literal(1)))

    def test_logical_operators(self) -> None:
        assert parse("a || b && c") == Logical(
            "||",
            Identifier("a"),
            Logical("&&", Identifier("b"), Identifier("c")),
        )

    def test_conditional(self) -> None:
        assert parse("a ? 1 : 2") == Conditional(Identifier("a"), Literal(1), Literal(2))

    def test_typeof(self) -> None:
        assert parse("typeof x") == Unary("typeof", Identifier("x"))

    def test_member_and_call(self) -> None:
        assert parse("a.b(1)") == Call(Member(Identifier("a"), Literal("b")), (Literal(1),))

    def test_optional_chain_is_wrapped(self) -> None:
        assert parse("a?.b.c") == Chain(
            Member(Member(Identifier("a"), Literal("b"), optional=True), Literal("c")),
        )

    def test_arrow_function(self) -> None:
        assert parse("(a, b) => a + b") == Arrow(("a", "b"), Binary("+", Identifier("a"), Identifier("b")))

    def test_arrow_with_single_param_and_rest(self) -> None:
        assert parse("x => x") == Arrow(("x",), Identifier("x"))
        assert parse("(...xs) => xs") == Arrow((), Identifier("xs"), rest="xs")

    def test_parenthesized_expression_is_not_arrow(self) -> None:
        assert parse("(a)") == Identifier("a")

    def test_template_literal(self) -> None:
        assert parse("`a${b}c`") == TemplateLiteral(("a", "c"), (Identifier("b"),))

    def test_keyword_literals(self) -> None:
        assert parse("null") == Literal(None)
        assert parse("undefined") == Literal(UNDEFINED)

    def test_empty_source(self) -> None:
        assert parse("") == Literal(UNDEFINED)
        assert parse("   ") == Literal(UNDEFINED)

    @pytest.mark.parametrize(
        ("source", "message"),
        [
            ("1 +", "Unexpected end of input"),
            ("a b", "Unexpected 'b'"),
            ("(1, 2)", "Sequence expressions are not supported"),
            ("new Date()", "'new' is not supported"),
            ("x => { return x }", "Arrow function bodies must be expressions"),
            ("`${}`", "Empty expression"),
            ("a.+", "Expected property name"),
            ("f`x`", "Tagged templates are not supported"),
            ("-2 ** 2", "Unary operator used immediately before exponentiation"),
            ("1 + typeof x ** 2", "Unary operator used immediately before exponentiation"),
        ],
    )
    def test_syntax_errors(self, source: str, message: str) -> None:
        with pytest.raises(ExpressionSyntaxError, match=message):
            parse(source)

    def test_syntax_error_position(self) -> None:
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse("1 + * 2")
        assert exc_info.value.position == 4
        assert "(at position 4)" in str(exc_info.value)

    def test_syntax_error_is_evaluation_error(self) -> None:
        with pytest.raises(EvaluationError):
            parse("1 +")


class TestReferencedPaths:
    """Tests for referenced_paths."""

    def test_member_paths(self) -> None:
        assert referenced_paths(parse("a.b.c + d[0]")) == {("a", "b", "c"), ("d", "0")}

    def test_method_call_reads_receiver(self) -> None:
        assert referenced_paths(parse("users.rows.map(r => r.name)")) == {("users", "rows", "map")}

    def test_arrow_parameters_are_not_references(self) -> None:
        assert referenced_paths(parse("(x) => x + y")) == {("y",)}

    def test_computed_dynamic_key(self) -> None:
        assert referenced_paths(parse("a[b].c")) == {("a",), ("b",)}

    def test_template_and_optional_chain(self) -> None:
        assert referenced_paths(parse("`${page?.title}`")) == {("page", "title")}
