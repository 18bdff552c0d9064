from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Registered ahead of ``/{nif}`` so the path is not taken for an identifier.

    Returns:
        dict: ``{"status": "ok"}``.
    """

    return {"status": "ok"}
