"""Restricted literal parser and renderer for JS/TS object-array syntax.

Reads exactly the literal subset a hand-maintained data file uses:
objects, arrays, strings (single, double, or backtick without
interpolation), numbers, true/false/null/undefined, with comments and
trailing commas. Identifiers, calls, spreads, shorthand properties and
template interpolation are rejected with a ParseError, so nothing in the
file is ever executed.

``render_literal`` writes values back in ``JSON.stringify(value, null, 2)``
layout with bare keys wherever the key is a valid identifier.

Tier 1 leaf — stdlib + repostore.errors.

Usage:
    from repostore.codecs.literal import parse_literal, render_literal

    parse_literal('[{id: "a", tags: ["x",],}]')  # [{"id": "a", "tags": ["x"]}]
"""

from __future__ import annotations

import json
import re
from typing import Any

from repostore.errors import ParseError

_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_NUMBER_RE = re.compile(
    r"[+-]?(?:0[xX][0-9A-Fa-f]+|0[bB][01]+|0[oO][0-7]+"
    r"|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)
_BARE_KEY_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

_KEYWORDS: dict[str, Any] = {"true": True, "false": False, "null": None}


class _Undefined:
    """Marker for `undefined`: dropped from objects, null inside arrays."""


_UNDEFINED = _Undefined()


class _LiteralParser:
    """Recursive-descent reader over one source string."""

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos

    # -- Scanning ----------------------------------------------------------

    def _fail(self, reason: str) -> ParseError:
        return ParseError("", f"{reason} at offset {self.pos}", offset=self.pos)

    def skip_trivia(self) -> None:
        """Skips whitespace, // line comments and /* block */ comments."""
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                close = text.find("*/", self.pos + 2)
                if close == -1:
                    raise self._fail("Unterminated comment")
                self.pos = close + 2
            else:
                return

    def _peek(self) -> str:
        self.skip_trivia()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, ch: str) -> None:
        if self._peek() != ch:
            raise self._fail(f"Expected {ch!r}")
        self.pos += 1

    # -- Values ------------------------------------------------------------

    def parse_value(self) -> Any:
        ch = self._peek()
        if not ch:
            raise self._fail("Unexpected end of input")
        if ch == "{":
            return self._parse_object()
        if ch == "[":
            return self._parse_array()
        if ch in "\"'`":
            return self._parse_string()
        if ch.isdigit() or ch in "+-.":
            return self._parse_number()

        match = _IDENTIFIER_RE.match(self.text, self.pos)
        if match:
            word = match.group(0)
            if word in _KEYWORDS:
                self.pos = match.end()
                return _KEYWORDS[word]
            if word == "undefined":
                self.pos = match.end()
                return _UNDEFINED
            raise self._fail(f"Unsupported identifier {word!r}")
        raise self._fail(f"Unexpected character {ch!r}")

    def _parse_object(self) -> dict[str, Any]:
        self._expect("{")
        result: dict[str, Any] = {}
        while True:
            ch = self._peek()
            if ch == "}":
                self.pos += 1
                return result
            key = self._parse_key()
            self._expect(":")
            value = self.parse_value()
            if value is not _UNDEFINED:
                result[key] = value
            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != "}":
                raise self._fail("Expected ',' or '}'")

    def _parse_key(self) -> str:
        ch = self._peek()
        if ch in "\"'":
            return self._parse_string()
        if ch == "[":
            raise self._fail("Computed keys are not supported")
        if ch.isdigit():
            return _number_key(self._parse_number())
        match = _IDENTIFIER_RE.match(self.text, self.pos)
        if not match:
            raise self._fail(f"Unexpected character {ch!r} in object key")
        self.pos = match.end()
        if self._peek() != ":":
            raise self._fail(f"Shorthand property {match.group(0)!r} is not supported")
        return match.group(0)

    def _parse_array(self) -> list[Any]:
        self._expect("[")
        result: list[Any] = []
        while True:
            ch = self._peek()
            if ch == "]":
                self.pos += 1
                return result
            if ch == ",":
                raise self._fail("Array holes are not supported")
            if self.text.startswith("...", self.pos):
                raise self._fail("Spread elements are not supported")
            value = self.parse_value()
            result.append(None if value is _UNDEFINED else value)
            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != "]":
                raise self._fail("Expected ',' or ']'")

    def _parse_string(self) -> str:
        text = self.text
        quote = text[self.pos]
        self.pos += 1
        chars: list[str] = []
        while True:
            if self.pos >= len(text):
                raise self._fail("Unterminated string")
            ch = text[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(chars)
            if ch == "\\":
                chars.append(self._parse_escape())
                continue
            if quote == "`" and text.startswith("${", self.pos):
                raise self._fail("Template interpolation is not supported")
            if ch == "\n" and quote != "`":
                raise self._fail("Unterminated string")
            chars.append(ch)
            self.pos += 1

    def _parse_escape(self) -> str:
        text = self.text
        self.pos += 1
        if self.pos >= len(text):
            raise self._fail("Unterminated escape")
        ch = text[self.pos]
        self.pos += 1
        if ch in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[ch]
        if ch == "\n":
            return ""
        if ch == "\r":
            if text.startswith("\n", self.pos):
                self.pos += 1
            return ""
        if ch == "x":
            return self._read_hex(2)
        if ch == "u":
            if text.startswith("{", self.pos):
                close = text.find("}", self.pos)
                if close == -1:
                    raise self._fail("Unterminated unicode escape")
                digits = text[self.pos + 1:close]
                self.pos = close + 1
                return _code_point(digits, self)
            return self._read_hex(4)
        return ch

    def _read_hex(self, count: int) -> str:
        digits = self.text[self.pos:self.pos + count]
        self.pos += count
        return _code_point(digits, self)

    def _parse_number(self) -> int | float:
        match = _NUMBER_RE.match(self.text, self.pos)
        if not match:
            raise self._fail("Invalid number")
        token = match.group(0)
        self.pos = match.end()
        sign = -1 if token.startswith("-") else 1
        body = token.lstrip("+-")
        prefix = body[:2].lower()
        if prefix == "0x":
            return sign * int(body[2:], 16)
        if prefix == "0b":
            return sign * int(body[2:], 2)
        if prefix == "0o":
            return sign * int(body[2:], 8)
        if any(c in body for c in ".eE"):
            return float(token)
        return int(token)


def _code_point(digits: str, parser: _LiteralParser) -> str:
    try:
        return chr(int(digits, 16))
    except ValueError:
        raise parser._fail(f"Invalid escape digits {digits!r}") from None


def _number_key(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_literal_at(text: str, start: int) -> tuple[Any, int]:
    """Parses one literal value beginning at ``start``.

    Returns:
        Tuple of (value, offset just past the value).

    Raises:
        ParseError: The text at start is not a supported literal.
    """
    parser = _LiteralParser(text, start)
    value = parser.parse_value()
    if value is _UNDEFINED:
        value = None
    return value, parser.pos


def parse_literal(text: str) -> Any:
    """Parses a complete literal; only trivia and one ``;`` may follow it."""
    value, end = parse_literal_at(text, 0)
    tail = _LiteralParser(text, end)
    if tail._peek() == ";":
        tail.pos += 1
    if tail._peek():
        raise tail._fail("Unexpected trailing content")
    return value


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_key(key: str) -> str:
    if _BARE_KEY_RE.match(key):
        return key
    return json.dumps(key, ensure_ascii=False)


def _render(value: Any, indent: str, level: int) -> str:
    if isinstance(value, dict):
        if not value:
            return "{}"
        inner = indent * (level + 1)
        items = [
            f"{inner}{_render_key(str(k))}: {_render(v, indent, level + 1)}"
            for k, v in value.items()
        ]
        return "{\n" + ",\n".join(items) + "\n" + indent * level + "}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        inner = indent * (level + 1)
        items = [f"{inner}{_render(v, indent, level + 1)}" for v in value]
        return "[\n" + ",\n".join(items) + "\n" + indent * level + "]"
    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def render_literal(value: Any, indent: int = 2) -> str:
    """Renders a plain value as a pretty-printed literal with bare keys."""
    return _render(value, " " * indent, 0)
