"""Portugalio (portugalio.com) source adapter."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import httpx

from nif_lookup.adapters.sources.base import (
    BROWSER_HEADERS,
    AbstractSourceAdapter,
    source_unavailable,
)
from nif_lookup.adapters.sources.jsonld import extract_json_ld, organization_to_partial
from nif_lookup.schemas.record import PartialRecord

logger = logging.getLogger(__name__)

PORTUGALIO_BASE_URL = "https://www.portugalio.com/"


class PortugalioSourceAdapter(AbstractSourceAdapter):
    """Reads the JSON-LD block of Portugalio's company search page."""

    name = "portugalio"

    def __init__(self, client: httpx.AsyncClient, base_url: str = PORTUGALIO_BASE_URL) -> None:
        self._client = client
        self._base_url = base_url

    async def fetch(self, nif: str) -> PartialRecord:
        try:
            response = await self._client.get(
                urljoin(self._base_url, "pesquisa/"),
                params={"q": nif, "tipo": "empresas"},
                headers=BROWSER_HEADERS,
            )
            response.raise_for_status()
            data = extract_json_ld(response.text)
            record = organization_to_partial(data)
        except Exception as exc:
            raise source_unavailable(self.name, nif, exc) from exc

        logger.debug("source.fetched", extra={"source": self.name, "nif": nif})
        return record
