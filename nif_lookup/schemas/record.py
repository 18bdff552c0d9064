"""Pydantic schemas for source results and merged business records.

Field names follow schema.org (camelCase) on the wire, which is the shape the
scraped sources publish in their JSON-LD blocks and the shape persisted in the
record cache.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_text(value: Any) -> str | None:
    """Reduce a source value to a trimmed string, or None.

    Numbers become strings and blanks become None. Structured JSON-LD values
    are tolerated: an object contributes its ``name`` (e.g. ``{"@type":
    "Country", "name": "Portugal"}``), a list its first usable item. Anything
    else is dropped so one odd field cannot invalidate the whole record.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        return _clean_text(value.get("name"))
    if isinstance(value, (list, tuple)):
        return next((text for text in map(_clean_text, value) if text), None)
    return None


class Address(BaseModel):
    """Postal address of a business."""

    street_address: str | None = Field(None, alias="streetAddress")
    address_locality: str | None = Field(None, alias="addressLocality")
    postal_code: str | None = Field(None, alias="postalCode")
    address_country: str | None = Field(None, alias="addressCountry")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def clean_text_fields(cls, value: Any) -> Any:
        return _clean_text(value)


class PartialRecord(BaseModel):
    """Best-effort result of a single source lookup.

    Every field is optional. An adapter failure is represented by an empty
    instance (``PartialRecord()``), never by ``None``.
    """

    name: str | None = None
    legal_name: str | None = Field(None, alias="legalName")
    tax_id: str | None = Field(None, alias="taxID")
    vat_id: str | None = Field(None, alias="vatID")
    description: str | None = None
    source_url: str | None = Field(None, alias="sourceURL")
    address: Address = Field(default_factory=Address)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator(
        "name", "legal_name", "tax_id", "vat_id", "description", "source_url", mode="before"
    )
    @classmethod
    def clean_text_fields(cls, value: Any) -> Any:
        return _clean_text(value)

    @field_validator("address", mode="before")
    @classmethod
    def default_address(cls, value: Any) -> Any:
        # JSON-LD sometimes carries the address as a bare string or null
        if isinstance(value, dict):
            return value
        if isinstance(value, Address):
            return value
        return {}


class CanonicalRecord(BaseModel):
    """Merged business record persisted once per NIF and served verbatim."""

    name: str = Field(..., min_length=1, description="Business name (always present).")
    legal_name: str | None = Field(None, alias="legalName")
    tax_id: str | None = Field(None, alias="taxID")
    vat_id: str | None = Field(None, alias="vatID")
    description: str | None = None
    portugalio_url: str | None = Field(
        None,
        alias="portugalioURL",
        description="Page of the business on portugalio.com, when that source answered.",
    )
    racius_url: str | None = Field(
        None,
        alias="raciusURL",
        description="Page of the business on racius.com, when that source answered.",
    )
    address: Address = Field(default_factory=Address)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json_bytes(self) -> bytes:
        """Serialize to the UTF-8 JSON document stored in the record cache."""
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_json_bytes(cls, data: bytes) -> "CanonicalRecord":
        """Parse a document produced by :meth:`to_json_bytes`.

        Raises:
            pydantic.ValidationError: If the payload is not a valid record.
        """
        return cls.model_validate_json(data)
