from __future__ import annotations

from abc import ABC, abstractmethod

from nif_lookup.core.errors import SourceUnavailableError
from nif_lookup.schemas.record import PartialRecord

# The scraped sites reject requests that do not look like a browser navigation.
BROWSER_HEADERS: dict[str, str] = {
    "accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "accept-language": "en-US,en;q=0.6",
    "sec-ch-ua": '"Not A(Brand";v="99", "Brave";v="121", "Chromium";v="121"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
    "sec-fetch-dest": "document",
    "sec-fetch-mode": "navigate",
    "sec-fetch-site": "same-origin",
    "sec-fetch-user": "?1",
    "sec-gpc": "1",
    "upgrade-insecure-requests": "1",
}


class AbstractSourceAdapter(ABC):
    """Interface for external sources that know something about a NIF."""

    name: str

    @abstractmethod
    async def fetch(self, nif: str) -> PartialRecord:
        """Look a NIF up in the source.

        Implementations make a single attempt and never retry.

        Args:
            nif: Nine-digit tax identifier, already validated.

        Returns:
            PartialRecord: Fields populated insofar as the source provided them.

        Raises:
            SourceUnavailableError: On network failure, non-success status,
                unexpected response shape or parse failure.
        """
        ...


def source_unavailable(source: str, nif: str, exc: BaseException) -> SourceUnavailableError:
    """Build the error an adapter raises when its lookup fails."""
    return SourceUnavailableError(
        code="source_unavailable",
        message=f"{source} lookup failed: {type(exc).__name__}: {exc}",
        details={"source": source, "nif": nif},
    )
