"""Existence probes and downloads against repository URLs, memoized per run."""
from __future__ import annotations

import logging
from typing import Optional

from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from .cache import SingleFlightCache

logger = logging.getLogger(__name__)


class ContentFetcher:
    """Probe and fetch remote files.

    Each URL is probed at most once and fetched at most once per instance,
    also when several worker threads ask for it at the same moment. There
    are no retries: a failed request means the file is not available at
    that location, and the resolver moves on to the next repository.
    """

    def __init__(self) -> None:
        self._validity: SingleFlightCache[bool] = SingleFlightCache()
        self._contents: SingleFlightCache[Optional[bytes]] = SingleFlightCache()

    def probe(self, url: str) -> bool:
        """Return True when a HEAD request for ``url`` succeeds (2xx)."""
        return self._validity.get_or_compute(url, lambda: self._probe(url))

    def fetch(self, url: str) -> Optional[bytes]:
        """Return the body of ``url``, or None when it cannot be downloaded."""
        return self._contents.get_or_compute(url, lambda: self._fetch(url))

    def _probe(self, url: str) -> bool:
        res = http_client.safe_head(url, context="probe")
        valid = http_client.is_success(res)
        if is_debug_enabled(logger):
            logger.debug(
                "Probed URL",
                extra=extra_context(
                    event="probe",
                    component="fetcher",
                    action="HEAD",
                    outcome="found" if valid else "missing",
                    target=safe_url(url)
                )
            )
        return valid

    def _fetch(self, url: str) -> Optional[bytes]:
        res = http_client.safe_get(url, context="fetch")
        if not http_client.is_success(res):
            if is_debug_enabled(logger):
                logger.debug(
                    "Fetch failed",
                    extra=extra_context(
                        event="fetch",
                        component="fetcher",
                        action="GET",
                        outcome="missing",
                        status_code=getattr(res, "status_code", None),
                        target=safe_url(url)
                    )
                )
            return None
        return res.content

    @property
    def probes_performed(self) -> int:
        return self._validity.computed

    @property
    def fetches_performed(self) -> int:
        return self._contents.computed
