"""Merge partial source records into a single canonical business record.

Each output field has an ordered list of sources. The first source holding a
non-empty value for that field wins; later sources only fill the gaps.
"""

from __future__ import annotations

from typing import Callable, Mapping

from nif_lookup.core.errors import NotFoundAppError
from nif_lookup.schemas.record import Address, CanonicalRecord, PartialRecord

RACIUS = "racius"
PORTUGALIO = "portugalio"
EUROPA = "europa"

DEFAULT_COUNTRY = "PORTUGAL"

Getter = Callable[[PartialRecord], str | None]

FIELD_PRECEDENCE: dict[str, tuple[str, ...]] = {
    "name": (RACIUS, PORTUGALIO, EUROPA),
    "legal_name": (RACIUS, PORTUGALIO),
    "tax_id": (RACIUS, PORTUGALIO),
    "vat_id": (RACIUS, PORTUGALIO, EUROPA),
    "description": (PORTUGALIO, RACIUS),
    "street_address": (RACIUS, PORTUGALIO, EUROPA),
    "address_locality": (RACIUS, PORTUGALIO, EUROPA),
    "postal_code": (RACIUS, PORTUGALIO, EUROPA),
    "address_country": (RACIUS, PORTUGALIO),
}

_GETTERS: dict[str, Getter] = {
    "name": lambda r: r.name,
    "legal_name": lambda r: r.legal_name,
    "tax_id": lambda r: r.tax_id,
    "vat_id": lambda r: r.vat_id,
    "description": lambda r: r.description,
    "street_address": lambda r: r.address.street_address,
    "address_locality": lambda r: r.address.address_locality,
    "postal_code": lambda r: r.address.postal_code,
    "address_country": lambda r: r.address.address_country,
}


def first_present(
    field: str,
    records: Mapping[str, PartialRecord],
    default: str | None = None,
) -> str | None:
    """Return the first non-empty value of ``field`` in precedence order."""
    getter = _GETTERS[field]
    for source in FIELD_PRECEDENCE[field]:
        value = getter(records[source])
        if value:
            return value
    return default


def combine(
    racius: PartialRecord,
    portugalio: PartialRecord,
    europa: PartialRecord,
) -> CanonicalRecord:
    """Merge the three source results.

    Args:
        racius: Result from racius.com (empty when the source failed).
        portugalio: Result from portugalio.com (empty when the source failed).
        europa: Result from the EU VIES service (empty when the source failed).

    Returns:
        CanonicalRecord: The merged record.

    Raises:
        NotFoundAppError: If no source supplies a business name.
    """
    records = {RACIUS: racius, PORTUGALIO: portugalio, EUROPA: europa}

    name = first_present("name", records)
    if not name:
        raise NotFoundAppError(
            code="nif_not_found",
            message="No source returned a business for this NIF",
        )

    return CanonicalRecord(
        name=name,
        legal_name=first_present("legal_name", records),
        tax_id=first_present("tax_id", records),
        vat_id=first_present("vat_id", records),
        description=first_present("description", records),
        portugalio_url=portugalio.source_url,
        racius_url=racius.source_url,
        address=Address(
            street_address=first_present("street_address", records),
            address_locality=first_present("address_locality", records),
            postal_code=first_present("postal_code", records),
            address_country=first_present("address_country", records, default=DEFAULT_COUNTRY),
        ),
    )
