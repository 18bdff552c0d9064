"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from nif_lookup.api.routes import health_router, nif_router
from nif_lookup.api.routes.nif import close_lookup_service
from nif_lookup.core.config import settings
from nif_lookup.core.exception_handlers import setup_exception_handlers
from nif_lookup.core.logging import configure_logging
from nif_lookup.core.middleware import request_id_middleware
from nif_lookup.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_lookup_service()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="NIF Lookup API",
        description=(
            "Looks up Portuguese businesses by NIF. Each identifier is resolved "
            "once against racius.com, portugalio.com and the EU VIES service, "
            "merged into a single record and served from a persistent cache "
            "afterwards."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers: /health must be matched before the /{nif} catch-all
    app.include_router(health_router)
    app.include_router(nif_router)

    apply_openapi_customizations(app)

    return app
