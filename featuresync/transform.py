"""Group and order catalog entries into the published document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from featuresync.errors import ParseFailedError
from featuresync.logging_config import get_logger
from featuresync.materializer import MaterializedData
from featuresync.models import Category, OutputDocument, RawEntry, Scenario
from featuresync.normalizers import coerce_entry_id

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class TransformResult:
    document: OutputDocument
    partial: bool = False

    @property
    def category_count(self) -> int:
        return len(self.document.categories)

    @property
    def feature_count(self) -> int:
        return sum(len(category.scenarios) for category in self.document.categories)

    @property
    def year_model_count(self) -> int:
        return len(self.document.year_models)


def build_entries(catalog: dict[str, Any]) -> list[RawEntry]:
    """Validate each catalog record, using its key as the integer id."""

    entries: list[RawEntry] = []
    seen: dict[int, str] = {}
    for key, payload in catalog.items():
        entry_id = coerce_entry_id(key)
        if entry_id is None:
            raise ParseFailedError(f"Catalog key {key!r} is not numeric", stage="transform")
        if entry_id in seen:
            raise ParseFailedError(
                f"Catalog keys {seen[entry_id]!r} and {key!r} share id {entry_id}",
                stage="transform",
            )
        seen[entry_id] = key

        if not isinstance(payload, dict):
            raise ParseFailedError(
                f"Catalog entry {entry_id} is not an object", stage="transform"
            )
        try:
            entries.append(RawEntry.model_validate({**payload, "id": entry_id}))
        except ValidationError as exc:
            raise ParseFailedError(
                f"Catalog entry {entry_id} is invalid: {exc}", stage="transform"
            ) from exc
    return entries


def sort_entries(entries: list[RawEntry]) -> list[RawEntry]:
    """Order entries by category order, then entry order, then id."""

    return sorted(
        entries,
        key=lambda entry: (entry.category_order_number, entry.order_number, entry.id),
    )


def group_categories(entries: list[RawEntry]) -> list[Category]:
    """Group sorted entries by category name, then order the categories.

    Each category takes its order number from the first entry seen for it.
    """

    categories: dict[str | None, Category] = {}
    for entry in entries:
        category = categories.get(entry.category_name)
        if category is None:
            category = Category(
                name=entry.category_name,
                order_number=entry.category_order_number,
            )
            categories[entry.category_name] = category
        category.scenarios.append(Scenario.from_entry(entry))

    return sorted(categories.values(), key=lambda category: category.order_number)


def transform(data: MaterializedData) -> TransformResult:
    """Build the :class:`OutputDocument` for *data*."""

    if not data.catalog:
        LOGGER.info(
            "Catalog data is empty or not found; it might be loaded dynamically. "
            "Writing year/model combinations only"
        )
        document = OutputDocument(year_models=data.year_models, categories=[])
        return TransformResult(document=document, partial=True)

    LOGGER.info("Processing %s catalog entries", len(data.catalog))
    entries = sort_entries(build_entries(data.catalog))
    document = OutputDocument(
        year_models=data.year_models,
        categories=group_categories(entries),
    )
    return TransformResult(document=document)


__all__ = [
    "TransformResult",
    "build_entries",
    "group_categories",
    "sort_entries",
    "transform",
]
