"""Source adapter layer - one adapter per external site that knows about NIFs."""

from nif_lookup.adapters.sources.base import AbstractSourceAdapter
from nif_lookup.adapters.sources.europa import EuropaSourceAdapter
from nif_lookup.adapters.sources.factory import create_http_client, create_source_adapters
from nif_lookup.adapters.sources.portugalio import PortugalioSourceAdapter
from nif_lookup.adapters.sources.racius import RaciusSourceAdapter
from nif_lookup.adapters.sources.throttled import ThrottledSourceAdapter

__all__ = [
    "AbstractSourceAdapter",
    "EuropaSourceAdapter",
    "PortugalioSourceAdapter",
    "RaciusSourceAdapter",
    "ThrottledSourceAdapter",
    "create_http_client",
    "create_source_adapters",
]
