from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Response

from nif_lookup.adapters.sources import create_http_client, create_source_adapters
from nif_lookup.adapters.storage import ShardedFileStore
from nif_lookup.core.config import settings
from nif_lookup.core.errors import InvalidIdentifierError
from nif_lookup.services.lookup_service import RecordLookupService
from nif_lookup.utils.nif_validator import is_valid_nif

router = APIRouter(tags=["NIF"])

# Records never change once stored, so clients and proxies may keep them a week
RECORD_CACHE_CONTROL = "public, max-age=604800, immutable"
RECORD_MEDIA_TYPE = "application/json; charset=utf-8"

_http_client: httpx.AsyncClient | None = None
_lookup_service: RecordLookupService | None = None


def get_lookup_service() -> RecordLookupService:
    """Return the process-wide lookup service, building it on first use.

    The service owns the lanes and the directory memo, so every request must
    share the same instance for throttling and coalescing to hold.
    """
    global _http_client, _lookup_service
    if _lookup_service is None:
        _http_client = create_http_client(settings.sources)
        _lookup_service = RecordLookupService(
            sources=create_source_adapters(_http_client, settings.sources),
            store=ShardedFileStore(settings.cache.directory),
        )
    return _lookup_service


async def close_lookup_service() -> None:
    """Release the shared HTTP client; the next request builds a new service."""
    global _http_client, _lookup_service
    if _http_client is not None:
        await _http_client.aclose()
    _http_client = None
    _lookup_service = None


@router.get(
    "/{nif}",
    responses={
        200: {"description": "Merged business record", "content": {"application/json": {}}},
        400: {"description": "Malformed NIF or failed checksum"},
        404: {"description": "No source knows this NIF"},
    },
)
async def lookup_nif(
    nif: str,
    service: RecordLookupService = Depends(get_lookup_service),
) -> Response:
    """Look up a Portuguese business by its NIF.

    The body is the stored record, byte for byte, so repeated requests for the
    same NIF always return identical payloads.

    Raises:
        InvalidIdentifierError: If ``nif`` is not a valid NIF (400).
        NotFoundAppError: If no source knows the NIF (404).
    """
    if not is_valid_nif(nif):
        raise InvalidIdentifierError(
            code="invalid_nif",
            message="Invalid NIF",
            details={"nif": nif, "hint": "A NIF has 9 digits, a known prefix and a valid check digit"},
        )

    payload = await service.get_response(nif)
    return Response(
        content=payload,
        media_type=RECORD_MEDIA_TYPE,
        headers={"Cache-Control": RECORD_CACHE_CONTROL},
    )
