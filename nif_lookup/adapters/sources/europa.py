"""EU VIES (VAT Information Exchange System) source adapter.

VIES is a JSON API, so no scraping is involved. It only knows the registered
name, the VAT number and a free-text postal address.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nif_lookup.adapters.sources.base import AbstractSourceAdapter, source_unavailable
from nif_lookup.schemas.record import PartialRecord

logger = logging.getLogger(__name__)

VIES_BASE_URL = "https://ec.europa.eu/taxation_customs/vies/rest-api"
VIES_COUNTRY = "PT"

# VIES placeholder for data a member state does not disclose
_UNDISCLOSED = "---"


def _disclosed(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == _UNDISCLOSED:
        return None
    return value


def parse_vies_address(address: str | None) -> dict[str, str | None]:
    """Split a VIES address into street, locality and postal code lines."""
    lines: list[str | None] = list((address or "").split("\n"))
    street_address, address_locality, postal_code = (lines + [None, None, None])[:3]
    return {
        "streetAddress": street_address,
        "addressLocality": address_locality,
        "postalCode": postal_code,
    }


def parse_vies_payload(payload: dict[str, Any]) -> PartialRecord:
    """Map a VIES ``check-vat`` response onto a PartialRecord.

    Raises:
        ValueError: If VIES answered with an error envelope.
    """
    if payload.get("errorWrappers"):
        errors = [wrapper.get("error") for wrapper in payload["errorWrappers"]]
        raise ValueError(f"VIES returned errors: {errors}")

    address = _disclosed(payload.get("address"))
    return PartialRecord.model_validate(
        {
            "name": _disclosed(payload.get("name")),
            "vatID": payload.get("vatNumber"),
            "address": parse_vies_address(address if isinstance(address, str) else None),
        }
    )


class EuropaSourceAdapter(AbstractSourceAdapter):
    """Queries the VIES REST API for Portuguese VAT numbers."""

    name = "europa"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        requester_member_state: str,
        requester_number: str,
        base_url: str = VIES_BASE_URL,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._params = {
            "requesterMemberStateCode": requester_member_state,
            "requesterNumber": requester_number,
        }

    async def fetch(self, nif: str) -> PartialRecord:
        url = f"{self._base_url}/ms/{VIES_COUNTRY}/vat/{nif}"
        try:
            response = await self._client.get(url, params=self._params)
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"unexpected VIES payload type: {type(payload).__name__}")
            record = parse_vies_payload(payload)
        except Exception as exc:
            raise source_unavailable(self.name, nif, exc) from exc

        logger.debug("source.fetched", extra={"source": self.name, "nif": nif})
        return record
