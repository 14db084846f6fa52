"""Turn extracted script text into the year/model list and catalog mapping.

The text is never executed. Assignments of literal values to ``window``
properties are read in document order into a namespace that is created per
call; every other statement is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any

import featuresync.selectors as selectors
from featuresync.errors import ParseFailedError
from featuresync.extractors.jsliteral import (
    UNDEFINED,
    LiteralParser,
    LiteralSyntaxError,
    canonical_key,
    is_identifier_char,
)
from featuresync.logging_config import get_logger

LOGGER = get_logger(__name__)

REQUIRED_BINDINGS = frozenset({selectors.YEAR_MODELS_BINDING, selectors.CATALOG_BINDING})

_ASSIGNMENT_TARGET = re.compile(
    r"""
    window\s*
    (?:
        \.\s*(?P<dotted>[A-Za-z_$][\w$]*)
      | \[\s*(?P<quote>["'])(?P<quoted>[A-Za-z_$][\w$]*)(?P=quote)\s*\]
    )
    """,
    re.VERBOSE,
)


@dataclass
class MaterializedData:
    """The two bindings read from the page scripts."""

    year_models: list[Any] = field(default_factory=list)
    catalog: dict[str, Any] = field(default_factory=dict)


class _AssignmentReader:
    """Walks script text and records literal ``window`` assignments."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.namespace: dict[str, Any] = {}

    def run(self) -> dict[str, Any]:
        text = self.text
        pos = 0
        while pos < len(text):
            char = text[pos]
            if char in "\"'`":
                pos = self._skip_string(pos)
            elif text.startswith("//", pos) or text.startswith("/*", pos):
                pos = self._skip_comment(pos)
            elif (
                char == "w"
                and text.startswith("window", pos)
                and (pos == 0 or not is_identifier_char(text[pos - 1]))
            ):
                pos = self._read_assignment(pos)
            else:
                pos += 1
        return self.namespace

    def _skip_string(self, pos: int) -> int:
        parser = LiteralParser(self.text, pos)
        try:
            parser.parse_string()
        except LiteralSyntaxError:
            return pos + 1
        return parser.pos

    def _skip_comment(self, pos: int) -> int:
        parser = LiteralParser(self.text, pos)
        try:
            parser.skip_insignificant()
        except LiteralSyntaxError:
            return len(self.text)
        return max(parser.pos, pos + 1)

    def _read_assignment(self, pos: int) -> int:
        match = _ASSIGNMENT_TARGET.match(self.text, pos)
        if not match:
            return pos + len("window")
        name = match.group("dotted") or match.group("quoted")
        parser = LiteralParser(self.text, match.end())

        try:
            key = self._read_subscript(parser)
            parser.skip_insignificant()
        except LiteralSyntaxError:
            # computed subscript, e.g. window.quizFunctionData[id]
            return match.end()
        if not self._at_plain_assignment(parser):
            return match.end()
        parser.pos += 1

        try:
            value = parser.parse_value()
        except LiteralSyntaxError as exc:
            if name in REQUIRED_BINDINGS:
                raise ParseFailedError(
                    f"Could not parse window.{name}: {exc}", stage="materialize"
                ) from exc
            LOGGER.debug("Skipping non-literal assignment to window.%s: %s", name, exc)
            return match.end()

        self._bind(name, key, value)
        return parser.pos

    def _read_subscript(self, parser: LiteralParser) -> str | None:
        parser.skip_insignificant()
        if parser.peek() != "[":
            return None
        parser.pos += 1
        parser.skip_insignificant()
        if parser.peek() in "\"'":
            key = parser.parse_string()
        else:
            key = canonical_key(parser.parse_number())
        parser.expect("]")
        return key

    def _at_plain_assignment(self, parser: LiteralParser) -> bool:
        text = self.text
        pos = parser.pos
        return text.startswith("=", pos) and not text.startswith(("==", "=>"), pos)

    def _bind(self, name: str, key: str | None, value: Any) -> None:
        if key is None:
            if value is UNDEFINED:
                self.namespace.pop(name, None)
            else:
                self.namespace[name] = value
            return

        target = self.namespace.setdefault(name, {})
        if not isinstance(target, dict):
            raise ParseFailedError(
                f"Cannot assign window.{name}[{key!r}] on a non-object value",
                stage="materialize",
            )
        if value is UNDEFINED:
            target.pop(key, None)
        else:
            target[key] = value


def materialize(script_text: str) -> MaterializedData:
    """Read the year/model list and catalog mapping out of *script_text*."""

    namespace = _AssignmentReader(script_text).run()
    LOGGER.debug("Materialized bindings: %s", sorted(namespace))

    if selectors.YEAR_MODELS_BINDING not in namespace:
        raise ParseFailedError(
            f"window.{selectors.YEAR_MODELS_BINDING} was not assigned a literal value",
            stage="materialize",
        )
    year_models = namespace[selectors.YEAR_MODELS_BINDING]
    if year_models is None:
        year_models = []
    if not isinstance(year_models, list):
        raise ParseFailedError(
            f"window.{selectors.YEAR_MODELS_BINDING} must be an array", stage="materialize"
        )

    catalog = namespace.get(selectors.CATALOG_BINDING)
    if catalog is None:
        catalog = {}
    if not isinstance(catalog, dict):
        raise ParseFailedError(
            f"window.{selectors.CATALOG_BINDING} must be an object", stage="materialize"
        )

    return MaterializedData(year_models=list(year_models), catalog=dict(catalog))


__all__ = ["MaterializedData", "materialize"]
