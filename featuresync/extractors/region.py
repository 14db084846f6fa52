"""Locate the catalog region in the vendor markup and pull its scripts out."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import featuresync.selectors as selectors
from featuresync.errors import ExtractionFailedError, MissingMarkerError
from featuresync.logging_config import get_logger

LOGGER = get_logger(__name__)

PREVIEW_CHARS = 500


class RegionStrategy(str, Enum):
    """Which fallback located the catalog region."""

    STRICT = "strict"
    LOOSE = "loose"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class Region:
    strategy: RegionStrategy
    markup: str
    external_scripts: int = 0


def _script_bodies(markup: str) -> list[str]:
    return [match.group(1) for match in selectors.SCRIPT_BLOCK.finditer(markup)]


def _recover_from_marker(markup: str) -> str | None:
    """Return every script block that mentions the year/model marker, joined in order."""

    if not selectors.YEAR_MODELS_ASSIGNMENT.search(markup):
        LOGGER.info("No %s found in HTML either", selectors.YEAR_MODELS_MARKER)
        LOGGER.info("HTML preview (first %s chars): %s", PREVIEW_CHARS, markup[:PREVIEW_CHARS])
        return None

    LOGGER.info("Found %s in HTML (%s characters)", selectors.YEAR_MODELS_MARKER, len(markup))
    blocks = [
        match.group(0)
        for match in selectors.SCRIPT_BLOCK.finditer(markup)
        if selectors.YEAR_MODELS_MARKER in match.group(1)
    ]
    if not blocks:
        return None
    LOGGER.info(
        "Found %s script block(s) with %s; extracting directly",
        len(blocks),
        selectors.YEAR_MODELS_BINDING,
    )
    return "\n".join(blocks)


def locate_region(markup: str) -> Region:
    """Return the part of *markup* that holds the embedded catalog.

    Tries the ``quiz-element`` wrapper with its class, then any
    ``quiz-element``, and only when the page has no such tag at all falls
    back to the script blocks that assign the year/model list.
    """

    external_scripts = len(selectors.EXTERNAL_SCRIPT.findall(markup))

    match = selectors.QUIZ_ELEMENT_STRICT.search(markup)
    if match:
        LOGGER.debug("Located catalog region via class-qualified quiz-element")
        return Region(RegionStrategy.STRICT, match.group(1), external_scripts)

    match = selectors.QUIZ_ELEMENT_LOOSE.search(markup)
    if match:
        LOGGER.debug("Located catalog region via bare quiz-element")
        return Region(RegionStrategy.LOOSE, match.group(1), external_scripts)

    open_tags = selectors.QUIZ_ELEMENT_OPEN_TAG.findall(markup)
    if open_tags:
        LOGGER.warning("Found unterminated quiz-element tags: %s", open_tags)
    else:
        LOGGER.info("No quiz-element tags found in HTML")
        recovered = _recover_from_marker(markup)
        if recovered is not None:
            return Region(RegionStrategy.RECOVERY, recovered, external_scripts)

    raise ExtractionFailedError(stage="locate")


def extract_script_text(region: Region) -> str:
    """Concatenate the region's script bodies in document order.

    Later scripts may extend bindings set by earlier ones, so the order is
    kept as found. When the catalog mapping is never populated, an empty
    assignment is appended so the mapping is always defined downstream.
    """

    bodies = _script_bodies(region.markup)
    if not bodies:
        raise ExtractionFailedError(
            "Could not find script tags within quiz-element", stage="extract"
        )

    combined = "".join(f"{body}\n" for body in bodies)

    if selectors.YEAR_MODELS_MARKER not in combined:
        raise MissingMarkerError(stage="extract")

    if not catalog_populated(combined):
        LOGGER.warning(
            "%s appears empty in static HTML; continuing with year/model data only",
            selectors.CATALOG_BINDING,
        )
        if region.external_scripts:
            LOGGER.info(
                "Found %s external script(s); the catalog is probably loaded dynamically",
                region.external_scripts,
            )
        combined += selectors.CATALOG_SYNTHETIC_ASSIGNMENT

    return combined


def catalog_populated(script_text: str) -> bool:
    """Return True when *script_text* assigns the catalog mapping some content."""

    if selectors.CATALOG_KEYED_ASSIGNMENT.search(script_text):
        return True
    assignments = len(selectors.CATALOG_ASSIGNMENT.findall(script_text))
    empty_assignments = len(selectors.CATALOG_EMPTY_ASSIGNMENT.findall(script_text))
    return assignments > empty_assignments


__all__ = [
    "Region",
    "RegionStrategy",
    "catalog_populated",
    "extract_script_text",
    "locate_region",
]
