from __future__ import annotations

from nif_lookup.api.routes.health import router as health_router
from nif_lookup.api.routes.nif import router as nif_router

__all__ = ["health_router", "nif_router"]
