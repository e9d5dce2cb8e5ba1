"""Tokenizer for binding expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any

from appdom._errors import ExpressionSyntaxError


class TokenKind(StrEnum):
    NUMBER = auto()
    STRING = auto()
    TEMPLATE = auto()
    IDENTIFIER = auto()
    PUNCTUATOR = auto()
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token.

    For ``TEMPLATE`` tokens, ``value`` is a pair ``(quasis, sources)``: the
    literal string chunks and the source text of each ``${...}`` part between them.
    """

    kind: TokenKind
    value: Any
    position: int

    def is_punctuator(self, *values: str) -> bool:
        return self.kind == TokenKind.PUNCTUATOR and self.value in values


# Longest first
_PUNCTUATORS = (
    "...",
    "===",
    "!==",
    "**",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "??",
    "?.",
    "=>",
    "+",
    "-",
    "*",
    "/",
    "%",
    "<",
    ">",
    "!",
    "?",
    ":",
    ".",
    ",",
    "(",
    ")",
    "[",
    "]",
    "{",
    "}",
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def _is_digit(char: str) -> bool:
    return len(char) == 1 and "0" <= char <= "9"


def _is_identifier_start(char: str) -> bool:
    return char.isalpha() or char in "_$"


def _is_identifier_part(char: str) -> bool:
    return char.isalnum() or char in "_$"


class Lexer:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def error(self, message: str, position: int | None = None) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, source=self.source, position=self.pos if position is None else position)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.source):
                tokens.append(Token(TokenKind.EOF, None, self.pos))
                return tokens
            tokens.append(self._next_token())

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self.pos += 1

    def _next_token(self) -> Token:
        start = self.pos
        char = self.source[start]
        following = self.source[start + 1 : start + 2]

        if _is_digit(char) or (char == "." and _is_digit(following)):
            return Token(TokenKind.NUMBER, self._read_number(), start)
        if char in "'\"":
            return Token(TokenKind.STRING, self._read_string(char), start)
        if char == "`":
            return Token(TokenKind.TEMPLATE, self._read_template(), start)
        if _is_identifier_start(char):
            while self.pos < len(self.source) and _is_identifier_part(self.source[self.pos]):
                self.pos += 1
            return Token(TokenKind.IDENTIFIER, self.source[start : self.pos], start)

        for punctuator in _PUNCTUATORS:
            if self.source.startswith(punctuator, start):
                # `a?.5:1` is a conditional, not an optional chain
                if punctuator == "?." and _is_digit(self.source[start + 2 : start + 3]):
                    continue
                self.pos += len(punctuator)
                return Token(TokenKind.PUNCTUATOR, punctuator, start)

        raise self.error(f"Unexpected character {char!r}")

    def _read_number(self) -> float:
        start = self.pos
        source = self.source
        prefix = source[start : start + 2].lower()
        if prefix in ("0x", "0o", "0b"):
            self.pos += 2
            while self.pos < len(source) and source[self.pos].isalnum():
                self.pos += 1
            try:
                return int(source[start + 2 : self.pos], {"0x": 16, "0o": 8, "0b": 2}[prefix])
            except ValueError:
                raise self.error("Invalid number literal", start) from None

        while self.pos < len(source) and _is_digit(source[self.pos]):
            self.pos += 1
        is_float = False
        if self.pos < len(source) and source[self.pos] == ".":
            is_float = True
            self.pos += 1
            while self.pos < len(source) and _is_digit(source[self.pos]):
                self.pos += 1
        if self.pos < len(source) and source[self.pos] in "eE":
            is_float = True
            self.pos += 1
            if self.pos < len(source) and source[self.pos] in "+-":
                self.pos += 1
            if self.pos >= len(source) or not _is_digit(source[self.pos]):
                raise self.error("Invalid number literal", start)
            while self.pos < len(source) and _is_digit(source[self.pos]):
                self.pos += 1
        if self.pos < len(source) and _is_identifier_start(source[self.pos]):
            raise self.error("Identifier directly after number", self.pos)

        text = source[start : self.pos]
        return float(text) if is_float else int(text)

    def _read_escape(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        if char in _ESCAPES:
            return _ESCAPES[char]
        if char == "u":
            if self.source[self.pos : self.pos + 1] == "{":
                end = self.source.find("}", self.pos)
                if end == -1:
                    raise self.error("Invalid unicode escape")
                code = self.source[self.pos + 1 : end]
                self.pos = end + 1
            else:
                code = self.source[self.pos : self.pos + 4]
                self.pos += 4
            try:
                return chr(int(code, 16))
            except ValueError:
                raise self.error("Invalid unicode escape") from None
        if char == "x":
            code = self.source[self.pos : self.pos + 2]
            self.pos += 2
            try:
                return chr(int(code, 16))
            except ValueError:
                raise self.error("Invalid hexadecimal escape") from None
        if char == "\n":
            return ""
        return char

    def _read_string(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chunks: list[str] = []
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chunks)
            if char == "\\":
                self.pos += 1
                if self.pos >= len(self.source):
                    break
                chunks.append(self._read_escape())
                continue
            if char == "\n":
                raise self.error("Unterminated string literal", start)
            chunks.append(char)
            self.pos += 1
        raise self.error("Unterminated string literal", start)

    def _read_template(self) -> tuple[tuple[str, ...], tuple[tuple[str, int], ...]]:
        start = self.pos
        self.pos += 1
        quasis: list[str] = []
        sources: list[tuple[str, int]] = []
        chunk: list[str] = []
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char == "`":
                self.pos += 1
                quasis.append("".join(chunk))
                return tuple(quasis), tuple(sources)
            if char == "\\":
                self.pos += 1
                if self.pos >= len(self.source):
                    break
                chunk.append(self._read_escape())
                continue
            if self.source.startswith("${", self.pos):
                quasis.append("".join(chunk))
                chunk = []
                self.pos += 2
                sources.append(self._read_template_expression())
                continue
            chunk.append(char)
            self.pos += 1
        raise self.error("Unterminated template literal", start)

    def _read_template_expression(self) -> tuple[str, int]:
        """Scan to the ``}`` closing a ``${`` and return the enclosed source with its offset."""
        start = self.pos
        depth = 0
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char in "'\"":
                self._read_string(char)
                continue
            if char == "`":
                self._read_template()
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                if depth == 0:
                    self.pos += 1
                    return self.source[start : self.pos - 1], start
                depth -= 1
            self.pos += 1
        raise self.error("Unterminated template expression", start)


def tokenize(source: str) -> list[Token]:
    """Split ``source`` into tokens, ending with an ``EOF`` token.

    Raises:
        ExpressionSyntaxError: On characters or literals that cannot be tokenized.

    """
    return Lexer(source).tokenize()
