"""Throttled call lanes.

A lane spaces out the calls made to one external source and lets concurrent
lookups of the same NIF share a single outbound request.
"""

from nif_lookup.adapters.rate_limit.base import AbstractLane
from nif_lookup.adapters.rate_limit.serial import RateLimitedLane

__all__ = [
    "AbstractLane",
    "RateLimitedLane",
]
