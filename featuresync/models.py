"""Record schemas for catalog entries and the published snapshot."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from featuresync.normalizers import normalize_device_list


class RawEntry(BaseModel):
    """One catalog record as found in the page, keyed by its numeric id."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    name: str | None = None
    notes: str | None = None
    category_name: str | None = Field(default=None, alias="categoryName")
    category_order_number: int = Field(alias="categoryOrderNumber")
    order_number: int = Field(alias="orderNumber")
    knob_availability: list[Any] = Field(default_factory=list, alias="knobAvailability")
    buttons_availability: list[Any] = Field(default_factory=list, alias="buttonsAvailability")
    stalks_availability: list[Any] = Field(default_factory=list, alias="stalksAvailability")

    @field_validator(
        "knob_availability", "buttons_availability", "stalks_availability", mode="before"
    )
    @classmethod
    def _default_empty(cls, value: Any) -> list[Any]:
        return normalize_device_list(value)


class SupportedDevices(BaseModel):
    knobs: list[Any] = Field(default_factory=list)
    buttons: list[Any] = Field(default_factory=list)
    stalks: list[Any] = Field(default_factory=list)


class Scenario(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str | None = None
    notes: str | None = None
    order_number: int = Field(alias="orderNumber")
    supported_devices: SupportedDevices = Field(
        default_factory=SupportedDevices, alias="supportedDevices"
    )

    @classmethod
    def from_entry(cls, entry: RawEntry) -> "Scenario":
        return cls(
            id=entry.id,
            name=entry.name,
            notes=entry.notes,
            order_number=entry.order_number,
            supported_devices=SupportedDevices(
                knobs=entry.knob_availability,
                buttons=entry.buttons_availability,
                stalks=entry.stalks_availability,
            ),
        )


class Category(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    order_number: int = Field(alias="orderNumber")
    scenarios: list[Scenario] = Field(default_factory=list)


class OutputDocument(BaseModel):
    """The snapshot consumed by the static site."""

    model_config = ConfigDict(populate_by_name=True)

    year_models: list[Any] = Field(default_factory=list, alias="yearModels")
    categories: list[Category] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready mapping with the published camelCase keys."""

        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "Category",
    "OutputDocument",
    "RawEntry",
    "Scenario",
    "SupportedDevices",
]
