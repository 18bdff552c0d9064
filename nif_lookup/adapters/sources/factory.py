"""Factory for the HTTP client and the source adapters."""

from __future__ import annotations

import logging

import httpx

from nif_lookup.adapters.sources.base import AbstractSourceAdapter
from nif_lookup.adapters.sources.europa import EuropaSourceAdapter
from nif_lookup.adapters.sources.portugalio import PortugalioSourceAdapter
from nif_lookup.adapters.sources.racius import RaciusSourceAdapter
from nif_lookup.adapters.sources.throttled import ThrottledSourceAdapter
from nif_lookup.core.config import SourceSettings, settings

logger = logging.getLogger(__name__)


def create_http_client(source_settings: SourceSettings | None = None) -> httpx.AsyncClient:
    """Build the shared client every adapter sends its requests through."""
    cfg = source_settings or settings.sources
    return httpx.AsyncClient(timeout=cfg.timeout_seconds, follow_redirects=True)


def _maybe_throttle(adapter: AbstractSourceAdapter, cooldown_seconds: float) -> AbstractSourceAdapter:
    if cooldown_seconds <= 0:
        return adapter
    logger.info(
        "source.throttled",
        extra={"source": adapter.name, "cooldown_s": cooldown_seconds},
    )
    return ThrottledSourceAdapter(adapter, cooldown_seconds=cooldown_seconds)


def create_source_adapters(
    client: httpx.AsyncClient,
    source_settings: SourceSettings | None = None,
) -> tuple[AbstractSourceAdapter, AbstractSourceAdapter, AbstractSourceAdapter]:
    """Instantiate the three sources in merge precedence order.

    Returns:
        (racius, portugalio, europa), each wrapped in a lane when its
        configured cool-down is positive.
    """
    cfg = source_settings or settings.sources

    racius = _maybe_throttle(RaciusSourceAdapter(client), cfg.racius_cooldown_seconds)
    portugalio = _maybe_throttle(PortugalioSourceAdapter(client), cfg.portugalio_cooldown_seconds)
    europa = _maybe_throttle(
        EuropaSourceAdapter(
            client,
            requester_member_state=cfg.vies_requester_member_state,
            requester_number=cfg.vies_requester_number,
        ),
        cfg.europa_cooldown_seconds,
    )
    return racius, portugalio, europa
