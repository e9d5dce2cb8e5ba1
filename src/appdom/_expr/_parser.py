"""Pratt parser for binding expressions.

The grammar is the expression subset of JavaScript: literals, template
literals, arrays, objects, member access with optional chaining, calls, arrow
functions with expression bodies, unary, binary, logical and conditional
operators. Statements and assignments are not part of it.
"""

from __future__ import annotations

from functools import lru_cache

from appdom._errors import ExpressionSyntaxError

from ._ast import (
    ArrayExpr,
    Arrow,
    Binary,
    Call,
    Chain,
    Conditional,
    Expr,
    Identifier,
    Literal,
    Logical,
    Member,
    ObjectExpr,
    Property,
    Spread,
    TemplateLiteral,
    Unary,
)
from ._lexer import Token, TokenKind, tokenize
from ._values import UNDEFINED

# Binding power of infix operators; higher binds tighter
_BINARY_PRECEDENCE = {
    "??": 1,
    "||": 2,
    "&&": 3,
    "==": 6,
    "!=": 6,
    "===": 6,
    "!==": 6,
    "<": 7,
    ">": 7,
    "<=": 7,
    ">=": 7,
    "in": 7,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "%": 10,
    "**": 11,
}
_LOGICAL = frozenset({"&&", "||", "??"})

_KEYWORD_LITERALS = {"true": True, "false": False, "null": None, "undefined": UNDEFINED}
_RESERVED = frozenset({"function", "class", "new", "delete", "void", "var", "let", "const", "this", "return", "await"})


class Parser:
    def __init__(self, source: str, offset: int = 0) -> None:
        self.source = source
        self.offset = offset
        self.tokens = tokenize(source)
        self.index = 0

    # Token helpers

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def peek(self, distance: int = 1) -> Token:
        return self.tokens[min(self.index + distance, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current
        if token.kind != TokenKind.EOF:
            self.index += 1
        return token

    def error(self, message: str, token: Token | None = None) -> ExpressionSyntaxError:
        token = token or self.current
        return ExpressionSyntaxError(message, source=self.source, position=self.offset + token.position)

    def expect(self, punctuator: str) -> Token:
        if not self.current.is_punctuator(punctuator):
            raise self.error(f"Expected '{punctuator}' but found {self._describe(self.current)}")
        return self.advance()

    def accept(self, punctuator: str) -> bool:
        if self.current.is_punctuator(punctuator):
            self.advance()
            return True
        return False

    @staticmethod
    def _describe(token: Token) -> str:
        if token.kind == TokenKind.EOF:
            return "end of input"
        return repr(token.value) if token.kind != TokenKind.TEMPLATE else "template literal"

    # Grammar

    def parse(self) -> Expr:
        if self.current.kind == TokenKind.EOF:
            return Literal(UNDEFINED)
        expression = self.parse_expression()
        if self.current.kind != TokenKind.EOF:
            raise self.error(f"Unexpected {self._describe(self.current)}")
        return expression

    def parse_expression(self) -> Expr:
        """Parse an assignment-level expression: arrow function or conditional."""
        if self._at_arrow():
            return self.parse_arrow()
        test = self.parse_binary(0)
        if self.accept("?"):
            consequent = self.parse_expression()
            self.expect(":")
            alternate = self.parse_expression()
            return Conditional(test, consequent, alternate)
        return test

    def parse_binary(self, min_precedence: int) -> Expr:
        start = self.current
        left = self.parse_unary()
        while True:
            token = self.current
            if token.kind not in (TokenKind.PUNCTUATOR, TokenKind.IDENTIFIER):
                return left
            operator = token.value
            precedence = _BINARY_PRECEDENCE.get(operator)
            if precedence is None or precedence <= min_precedence:
                return left
            if operator == "**" and isinstance(left, Unary) and not start.is_punctuator("("):
                msg = "Unary operator used immediately before exponentiation expression, parenthesize the operand"
                raise self.error(msg, token)
            self.advance()
            # `**` is right associative
            right = self.parse_binary(precedence - 1 if operator == "**" else precedence)
            left = Logical(operator, left, right) if operator in _LOGICAL else Binary(operator, left, right)

    def parse_unary(self) -> Expr:
        token = self.current
        if token.is_punctuator("!", "-", "+") or (token.kind == TokenKind.IDENTIFIER and token.value == "typeof"):
            self.advance()
            return Unary(token.value, self.parse_unary())
        return self.parse_postfix(self.parse_primary())

    def parse_postfix(self, expression: Expr) -> Expr:
        in_chain = False
        while True:
            token = self.current
            if token.is_punctuator("."):
                self.advance()
                expression = Member(expression, Literal(self._property_name()))
            elif token.is_punctuator("?."):
                self.advance()
                in_chain = True
                if self.accept("("):
                    expression = Call(expression, self.parse_arguments(), optional=True)
                elif self.accept("["):
                    prop = self.parse_expression()
                    self.expect("]")
                    expression = Member(expression, prop, computed=True, optional=True)
                else:
                    expression = Member(expression, Literal(self._property_name()), optional=True)
            elif token.is_punctuator("["):
                self.advance()
                prop = self.parse_expression()
                self.expect("]")
                expression = Member(expression, prop, computed=True)
            elif token.is_punctuator("("):
                self.advance()
                expression = Call(expression, self.parse_arguments())
            elif token.kind == TokenKind.TEMPLATE:
                raise self.error("Tagged templates are not supported")
            else:
                return Chain(expression) if in_chain else expression

    def _property_name(self) -> str:
        token = self.advance()
        if token.kind != TokenKind.IDENTIFIER:
            raise self.error(f"Expected property name but found {self._describe(token)}", token)
        return token.value

    def parse_arguments(self) -> tuple[Expr | Spread, ...]:
        arguments: list[Expr | Spread] = []
        while not self.current.is_punctuator(")"):
            if self.accept("..."):
                arguments.append(Spread(self.parse_expression()))
            else:
                arguments.append(self.parse_expression())
            if not self.accept(","):
                break
        self.expect(")")
        return tuple(arguments)

    def parse_primary(self) -> Expr:  # noqa: C901, PLR0911
        token = self.advance()
        match token.kind:
            case TokenKind.NUMBER | TokenKind.STRING:
                return Literal(token.value)
            case TokenKind.TEMPLATE:
                return self._template(token)
            case TokenKind.IDENTIFIER:
                if token.value in _KEYWORD_LITERALS:
                    return Literal(_KEYWORD_LITERALS[token.value])
                if token.value in _RESERVED:
                    raise self.error(f"'{token.value}' is not supported in expressions", token)
                return Identifier(token.value)
            case TokenKind.PUNCTUATOR if token.value == "(":
                expression = self.parse_expression()
                if self.current.is_punctuator(","):
                    raise self.error("Sequence expressions are not supported")
                self.expect(")")
                return expression
            case TokenKind.PUNCTUATOR if token.value == "[":
                return self._array()
            case TokenKind.PUNCTUATOR if token.value == "{":
                return self._object()
            case TokenKind.EOF:
                raise self.error("Unexpected end of input", token)
            case _:
                raise self.error(f"Unexpected {self._describe(token)}", token)

    def _template(self, token: Token) -> TemplateLiteral:
        quasis, sources = token.value
        expressions = tuple(
            Parser(source, self.offset + position).parse_required() for source, position in sources
        )
        return TemplateLiteral(quasis, expressions)

    def parse_required(self) -> Expr:
        if self.current.kind == TokenKind.EOF:
            raise self.error("Empty expression")
        return self.parse()

    def _array(self) -> ArrayExpr:
        elements: list[Expr | Spread] = []
        while not self.current.is_punctuator("]"):
            if self.accept("..."):
                elements.append(Spread(self.parse_expression()))
            else:
                elements.append(self.parse_expression())
            if not self.accept(","):
                break
        self.expect("]")
        return ArrayExpr(tuple(elements))

    def _object(self) -> ObjectExpr:
        properties: list[Property | Spread] = []
        while not self.current.is_punctuator("}"):
            if self.accept("..."):
                properties.append(Spread(self.parse_expression()))
            elif self.accept("["):
                key = self.parse_expression()
                self.expect("]")
                self.expect(":")
                properties.append(Property(key, self.parse_expression(), computed=True))
            else:
                token = self.advance()
                if token.kind not in (TokenKind.IDENTIFIER, TokenKind.STRING, TokenKind.NUMBER):
                    raise self.error(f"Unexpected {self._describe(token)} in object literal", token)
                key = Literal(token.value if token.kind != TokenKind.NUMBER else str(token.value))
                if self.accept(":"):
                    properties.append(Property(key, self.parse_expression()))
                elif token.kind == TokenKind.IDENTIFIER:
                    # Shorthand `{ a }`
                    properties.append(Property(key, Identifier(token.value)))
                else:
                    raise self.error("Expected ':' in object literal")
            if not self.accept(","):
                break
        self.expect("}")
        return ObjectExpr(tuple(properties))

    # Arrow functions

    def _at_arrow(self) -> bool:
        token = self.current
        if token.kind == TokenKind.IDENTIFIER:
            return self.peek().is_punctuator("=>")
        if not token.is_punctuator("("):
            return False
        distance = 1
        expect_name = True
        while True:
            ahead = self.peek(distance)
            if ahead.is_punctuator(")"):
                return self.peek(distance + 1).is_punctuator("=>")
            if expect_name:
                if ahead.is_punctuator("..."):
                    distance += 1
                    continue
                if ahead.kind != TokenKind.IDENTIFIER:
                    return False
            elif not ahead.is_punctuator(","):
                return False
            expect_name = not expect_name
            distance += 1

    def parse_arrow(self) -> Arrow:
        params: list[str] = []
        rest: str | None = None
        if self.current.kind == TokenKind.IDENTIFIER:
            params.append(self.advance().value)
        else:
            self.expect("(")
            while not self.current.is_punctuator(")"):
                if self.accept("..."):
                    rest = self.advance().value
                    break
                params.append(self.advance().value)
                if not self.accept(","):
                    break
            self.expect(")")
        self.expect("=>")
        if self.current.is_punctuator("{"):
            raise self.error("Arrow function bodies must be expressions; wrap object literals in parentheses")
        return Arrow(tuple(params), self.parse_expression(), rest)


@lru_cache(maxsize=1024)
def parse(source: str) -> Expr:
    """Parse a binding expression into a syntax tree.

    Results are cached per source text; trees are immutable.

    Raises:
        ExpressionSyntaxError: If ``source`` is not a valid expression.

    Example:
        >>> parse("a + 1")
        Binary(operator='+', left=Identifier(name='a'), right=Literal(value=1))

    """
    return Parser(source).parse()
