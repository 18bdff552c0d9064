"""Racius (racius.com) source adapter.

Racius needs two requests: a search page listing matching companies, then the
company page whose JSON-LD block holds the data.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from nif_lookup.adapters.sources.base import (
    BROWSER_HEADERS,
    AbstractSourceAdapter,
    source_unavailable,
)
from nif_lookup.adapters.sources.jsonld import extract_json_ld, organization_to_partial
from nif_lookup.schemas.record import PartialRecord

logger = logging.getLogger(__name__)

RACIUS_BASE_URL = "https://www.racius.com/"
RESULT_LINK_CLASS = "results__col-link"


def find_result_link(html: str) -> str:
    """Return the href of the first search result.

    Raises:
        ValueError: If the search page lists no result.
    """
    soup = BeautifulSoup(html, "html.parser")
    node = soup.find(class_=RESULT_LINK_CLASS)
    if node is None:
        raise ValueError("search page has no result link")

    href = node.get("href")
    if not href:
        anchor = node.find("a", href=True)
        href = anchor["href"] if anchor is not None else None
    if not href:
        raise ValueError("search result has no href")
    return str(href).strip()


class RaciusSourceAdapter(AbstractSourceAdapter):
    """Scrapes the Racius company directory."""

    name = "racius"

    def __init__(self, client: httpx.AsyncClient, base_url: str = RACIUS_BASE_URL) -> None:
        self._client = client
        self._base_url = base_url
        self._headers = {**BROWSER_HEADERS, "referer": base_url}

    async def fetch(self, nif: str) -> PartialRecord:
        try:
            search = await self._client.get(
                urljoin(self._base_url, "pesquisa/"),
                params={"q": nif},
                headers=self._headers,
            )
            search.raise_for_status()
            company_url = urljoin(self._base_url, find_result_link(search.text))

            page = await self._client.get(company_url, headers=self._headers)
            page.raise_for_status()
            record = organization_to_partial(extract_json_ld(page.text), page_url=company_url)
        except Exception as exc:
            raise source_unavailable(self.name, nif, exc) from exc

        logger.debug(
            "source.fetched", extra={"source": self.name, "nif": nif, "url": record.source_url}
        )
        return record
