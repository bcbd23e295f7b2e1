"""Shared HTTP helpers used by the content fetcher.

Encapsulates common request/timeout error handling so callers avoid
duplicating try/except blocks. A failed request is never fatal here: the
helpers return None and the caller treats the file as absent from that
location.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": Constants.USER_AGENT}


def _request(method: str, url: str, *, context: str, **kwargs: Any) -> Optional[requests.Response]:
    """Issue one request with DEBUG traces; return None on any transport failure."""
    safe_target = safe_url(url)
    kwargs.setdefault("headers", DEFAULT_HEADERS)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = requests.request(method, url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
        except requests.Timeout:
            logger.debug(
                "%s request timed out after %s seconds: %s",
                context,
                Constants.REQUEST_TIMEOUT,
                safe_target,
            )
            return None
        except (requests.RequestException, ValueError) as exc:  # includes ConnectionError, InvalidURL
            logger.debug("%s request failed for %s: %s", context, safe_target, exc)
            return None

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action=method,
                outcome="success" if is_success(res) else "handled_non_2xx",
                status_code=res.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target,
                context=context
            )
        )
    return res


def safe_head(url: str, *, context: str, **kwargs: Any) -> Optional[requests.Response]:
    """Perform a HEAD request that follows redirects.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "probe").
        **kwargs: Passed through to requests.

    Returns:
        The response, or None when the request could not be completed.
    """
    kwargs.setdefault("allow_redirects", True)
    return _request("HEAD", url, context=context, **kwargs)


def safe_get(url: str, *, context: str, **kwargs: Any) -> Optional[requests.Response]:
    """Perform a GET request.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "fetch").
        **kwargs: Passed through to requests.

    Returns:
        The response, or None when the request could not be completed.
    """
    return _request("GET", url, context=context, **kwargs)


def is_success(res: Optional[requests.Response]) -> bool:
    """Return True for a completed request with a 2xx status."""
    return res is not None and 200 <= res.status_code < 300
