"""Blocking fetch of an exposition document over HTTP."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from loguru import logger

DEFAULT_TIMEOUT = 10.0

ACCEPT = (
    "application/openmetrics-text;version=1.0.0;q=0.9,"
    "text/plain;version=0.0.4;q=0.5,*/*;q=0.1"
)

log = logger.bind(component="fetch")


@dataclass(frozen=True, slots=True)
class FetchError(Exception):
    """The endpoint could not be read; reported before any terminal setup."""

    url: str
    reason: str
    status: int | None = None

    def __str__(self) -> str:
        if self.status is not None:
            return f"GET {self.url} failed: HTTP {self.status} {self.reason}"
        return f"GET {self.url} failed: {self.reason}"


def normalize_endpoint(endpoint: str) -> str:
    """Prefix ``http://`` when the endpoint carries no scheme."""
    endpoint = endpoint.strip()
    if "://" in endpoint:
        return endpoint
    return f"http://{endpoint}"


def fetch_exposition(
    endpoint: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    client: httpx.Client | None = None,
) -> str:
    """GET the endpoint and return its body as text.

    Raises:
        FetchError: On transport errors or a non-2xx status.
    """
    url = normalize_endpoint(endpoint)
    log.debug("GET {url}", url=url)

    owned = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        response = http.get(url, headers={"Accept": ACCEPT})
    except httpx.HTTPError as exc:
        log.error("Request to {url} failed: {exc}", url=url, exc=exc)
        raise FetchError(url=url, reason=str(exc) or type(exc).__name__) from exc
    finally:
        if owned:
            http.close()

    if not response.is_success:
        log.error("GET {url} returned {status}", url=url, status=response.status_code)
        raise FetchError(url=url, reason=response.reason_phrase, status=response.status_code)

    body = response.content.decode("utf-8", errors="replace")
    log.info(
        "Fetched {size} bytes from {url} ({content_type})",
        size=len(response.content),
        url=url,
        content_type=response.headers.get("content-type", "unknown"),
    )
    return body
