"""Strict reader for JavaScript literal object graphs.

Only data is accepted: objects, arrays, strings, numbers, ``true``,
``false``, ``null`` and ``undefined``. Identifiers, calls, operators and
template interpolation raise :class:`LiteralSyntaxError`.
"""

from __future__ import annotations

import math
import re
from typing import Any

_WHITESPACE = " \t\n\r\f\v\u00a0\ufeff\u2028\u2029"

_NUMBER_PATTERN = re.compile(
    r"""
    (?P<sign>[+-]?)
    (?:
        0[xX](?P<hex>[0-9a-fA-F]+)
      | 0[oO](?P<oct>[0-7]+)
      | 0[bB](?P<bin>[01]+)
      | (?P<dec>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    )
    """,
    re.VERBOSE,
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

_KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
}


class _Undefined:
    """Marker for JavaScript ``undefined``."""

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()


class LiteralSyntaxError(ValueError):
    """Raised when text is not a well-formed data literal."""

    def __init__(self, message: str, position: int) -> None:
        self.position = position
        super().__init__(f"{message} at offset {position}")


def is_identifier_char(char: str) -> bool:
    return char.isalnum() or char in "_$"


def canonical_key(value: Any) -> str:
    """Return the property name JavaScript would use for a literal key."""

    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class LiteralParser:
    """Recursive-descent reader positioned over ``text``."""

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos

    # ---- low level --------------------------------------------------

    def error(self, message: str) -> LiteralSyntaxError:
        return LiteralSyntaxError(message, self.pos)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_insignificant(self) -> None:
        """Advance past whitespace and comments."""

        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char in _WHITESPACE:
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                close = text.find("*/", self.pos + 2)
                if close == -1:
                    raise self.error("Unterminated comment")
                self.pos = close + 2
            else:
                return

    def expect(self, char: str) -> None:
        self.skip_insignificant()
        if self.peek() != char:
            found = self.peek() or "end of input"
            raise self.error(f"Expected {char!r}, found {found!r}")
        self.pos += 1

    # ---- values -----------------------------------------------------

    def parse_value(self) -> Any:
        self.skip_insignificant()
        char = self.peek()
        if not char:
            raise self.error("Unexpected end of input")
        if char == "{":
            return self.parse_object()
        if char == "[":
            return self.parse_array()
        if char in "\"'`":
            return self.parse_string()
        if char.isdigit() or char in "+-.":
            return self.parse_number()
        if is_identifier_char(char):
            return self.parse_word()
        raise self.error(f"Unexpected character {char!r}")

    def parse_object(self) -> dict[str, Any]:
        self.expect("{")
        result: dict[str, Any] = {}
        while True:
            self.skip_insignificant()
            if self.peek() == "}":
                self.pos += 1
                return result
            key = self.parse_key()
            self.expect(":")
            value = self.parse_value()
            if value is UNDEFINED:
                result.pop(key, None)
            else:
                result[key] = value
            self.skip_insignificant()
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "}":
                raise self.error("Expected ',' or '}' in object")

    def parse_key(self) -> str:
        self.skip_insignificant()
        char = self.peek()
        if char in "\"'":
            return self.parse_string()
        if char.isdigit() or char == ".":
            return canonical_key(self.parse_number())
        start = self.pos
        while self.pos < len(self.text) and is_identifier_char(self.text[self.pos]):
            self.pos += 1
        if start == self.pos:
            raise self.error("Expected property name")
        return self.text[start:self.pos]

    def parse_array(self) -> list[Any]:
        self.expect("[")
        result: list[Any] = []
        while True:
            self.skip_insignificant()
            if self.peek() == "]":
                self.pos += 1
                return result
            if self.peek() == ",":
                # elision, e.g. [1,,2]
                result.append(None)
                self.pos += 1
                continue
            value = self.parse_value()
            result.append(None if value is UNDEFINED else value)
            self.skip_insignificant()
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "]":
                raise self.error("Expected ',' or ']' in array")

    def parse_string(self) -> str:
        text = self.text
        quote = text[self.pos]
        self.pos += 1
        parts: list[str] = []
        while True:
            if self.pos >= len(text):
                raise self.error("Unterminated string")
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                break
            if char == "\\":
                parts.append(self._parse_escape())
                continue
            if quote == "`" and text.startswith("${", self.pos):
                raise self.error("Template interpolation is not allowed")
            if char == "\n" and quote != "`":
                raise self.error("Unterminated string")
            parts.append(char)
            self.pos += 1

        value = "".join(parts)
        try:
            return value.encode("utf-16", "surrogatepass").decode("utf-16")
        except UnicodeDecodeError:
            return value

    def _parse_escape(self) -> str:
        text = self.text
        self.pos += 1
        if self.pos >= len(text):
            raise self.error("Unterminated escape sequence")
        char = text[self.pos]
        self.pos += 1
        if char in _SIMPLE_ESCAPES and not (char == "0" and self.peek().isdigit()):
            return _SIMPLE_ESCAPES[char]
        if char == "x":
            return chr(self._read_hex(2))
        if char == "u":
            if self.peek() == "{":
                close = text.find("}", self.pos)
                if close == -1:
                    raise self.error("Unterminated unicode escape")
                digits = text[self.pos + 1 : close]
                self.pos = close + 1
                try:
                    return chr(int(digits, 16))
                except ValueError:
                    raise self.error("Invalid unicode escape") from None
            return chr(self._read_hex(4))
        if char == "\r" and self.peek() == "\n":
            self.pos += 1
            return ""
        if char in "\n\u2028\u2029":
            return ""
        return char

    def _read_hex(self, width: int) -> int:
        digits = self.text[self.pos : self.pos + width]
        if len(digits) != width or any(c not in "0123456789abcdefABCDEF" for c in digits):
            raise self.error("Invalid hex escape")
        self.pos += width
        return int(digits, 16)

    def parse_number(self) -> int | float | None:
        match = _NUMBER_PATTERN.match(self.text, self.pos)
        if not match:
            sign = self.peek()
            if sign in "+-":
                self.pos += 1
                if self.text.startswith("Infinity", self.pos):
                    self.pos += len("Infinity")
                    return None
            raise self.error("Invalid number")
        self.pos = match.end()
        if self.pos < len(self.text) and is_identifier_char(self.text[self.pos]):
            raise self.error("Invalid number")

        negative = match.group("sign") == "-"
        if match.group("hex"):
            value: int | float = int(match.group("hex"), 16)
        elif match.group("oct"):
            value = int(match.group("oct"), 8)
        elif match.group("bin"):
            value = int(match.group("bin"), 2)
        else:
            digits = match.group("dec")
            if any(c in digits for c in ".eE"):
                value = float(digits)
                if not math.isfinite(value):
                    return None
            else:
                value = int(digits)
        return -value if negative else value

    def parse_word(self) -> Any:
        start = self.pos
        while self.pos < len(self.text) and is_identifier_char(self.text[self.pos]):
            self.pos += 1
        word = self.text[start:self.pos]
        if word in _KEYWORDS:
            return _KEYWORDS[word]
        if word == "undefined":
            return UNDEFINED
        if word in {"NaN", "Infinity"}:
            # JSON has no representation for these; JSON.stringify emits null.
            return None
        self.pos = start
        raise self.error(f"Identifier {word!r} is not a literal value")


def parse_literal(text: str) -> Any:
    """Parse *text* as a single literal, allowing a trailing semicolon."""

    parser = LiteralParser(text)
    value = parser.parse_value()
    parser.skip_insignificant()
    if parser.peek() == ";":
        parser.pos += 1
        parser.skip_insignificant()
    if not parser.at_end():
        raise parser.error("Unexpected trailing content")
    return None if value is UNDEFINED else value


__all__ = [
    "LiteralParser",
    "LiteralSyntaxError",
    "UNDEFINED",
    "canonical_key",
    "is_identifier_char",
    "parse_literal",
]
