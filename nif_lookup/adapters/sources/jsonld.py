"""Helpers for the schema.org JSON-LD blocks the scraped sites embed."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator

from bs4 import BeautifulSoup

from nif_lookup.schemas.record import PartialRecord

logger = logging.getLogger(__name__)


class JsonLdNotFound(ValueError):
    """Raised when a page carries no usable JSON-LD organisation block."""


def _iter_objects(payload: Any) -> Iterator[dict[str, Any]]:
    if isinstance(payload, list):
        for item in payload:
            yield from _iter_objects(item)
    elif isinstance(payload, dict):
        yield payload
        graph = payload.get("@graph")
        if graph is not None:
            yield from _iter_objects(graph)


def extract_json_ld(html: str) -> dict[str, Any]:
    """Return the first JSON-LD object on the page that carries a name.

    Blocks that fail to parse are skipped.

    Raises:
        JsonLdNotFound: If no block yields a named object.
    """
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.debug("jsonld.invalid_block", extra={"error_msg": str(exc)})
            continue
        for obj in _iter_objects(payload):
            if obj.get("name"):
                return obj
    raise JsonLdNotFound("no JSON-LD block with a name found")


def first_url(value: Any) -> str | None:
    """JSON-LD ``url`` may be a string or a list of strings."""
    if isinstance(value, list):
        value = next((item for item in value if isinstance(item, str) and item.strip()), None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def organization_to_partial(data: dict[str, Any], *, page_url: str | None = None) -> PartialRecord:
    """Map a schema.org Organization object onto a PartialRecord.

    The object's own ``url`` wins over the page it was scraped from.
    """
    return PartialRecord.model_validate(
        {
            "name": data.get("name"),
            "legalName": data.get("legalName"),
            "taxID": data.get("taxID"),
            "vatID": data.get("vatID"),
            "description": data.get("description"),
            "sourceURL": first_url(data.get("url")) or page_url,
            "address": data.get("address"),
        }
    )
