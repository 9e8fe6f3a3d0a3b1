"""Full-text search capability detection.

Whether the document store offers relevance-ranked search is checked once
at startup and then reused. The check is an explicit object handed to the
search service, so tests pass a capability with a canned probe, and
:meth:`SearchCapability.reset` forces a re-check (e.g. after index creation).
"""

from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

Probe = Callable[[], Awaitable[bool]]


class SearchCapability:
    """
    Cached answer to "is ranked search available?".

    Attributes:
        name: Label used in logs and health output
    """

    def __init__(self, probe: Probe, name: str = "ranked_search") -> None:
        self._probe = probe
        self._available: Optional[bool] = None
        self.name = name

    async def check(self) -> bool:
        """Run the probe on first use; return the cached answer afterwards."""
        if self._available is not None:
            return self._available

        try:
            self._available = bool(await self._probe())
        except Exception as e:
            logger.warning(
                "search_capability_probe_failed",
                capability=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._available = False

        logger.info("search_capability_checked", capability=self.name, available=self._available)
        return self._available

    @property
    def checked(self) -> bool:
        return self._available is not None

    @property
    def available(self) -> bool:
        """Last known answer (False until checked)."""
        return bool(self._available)

    def reset(self) -> None:
        """Forget the cached answer; the next check() probes again."""
        self._available = None
        logger.info("search_capability_reset", capability=self.name)


def hosted_search_probe(mongodb_uri: str) -> Probe:
    """
    Probe that reports ranked search for hosted clusters only.

    Self-hosted deployments fall back to basic text matching.
    """

    async def probe() -> bool:
        return "mongodb.net" in mongodb_uri or mongodb_uri.startswith("mongodb+srv")

    return probe
