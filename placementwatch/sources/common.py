"""Shared HTTP and page-text utilities for all evidence sources."""

from typing import Any, Optional

import requests
from bs4 import BeautifulSoup

from ..logger import get_logger
from ..normalize import domain_in
from ..retry import RetryError, exponential_backoff, should_retry_http_status
from ..vocab import LINK_SHORTENER_DOMAINS, SEARCH_ENGINE_DOMAINS

logger = get_logger()

USER_AGENT = "Mozilla/5.0 (compatible; placementwatch/0.3; +https://github.com/placementwatch)"
NON_EVIDENCE_DOMAINS = SEARCH_ENGINE_DOMAINS | LINK_SHORTENER_DOMAINS


class TransientHTTPError(requests.exceptions.RequestException):
    """A 5xx/408 response worth retrying."""


@exponential_backoff(
    max_retries=2,
    base_delay=1.0,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, TransientHTTPError),
)
def _request_with_retry(method: str, url: str, **kwargs):
    """Send a request with automatic retry on transient errors."""
    resp = requests.request(method, url, **kwargs)
    if should_retry_http_status(resp.status_code):
        raise TransientHTTPError(f"HTTP {resp.status_code}", response=resp)
    return resp


def fetch(method: str, url: str, service: str, timeout: float, **kwargs) -> Optional[requests.Response]:
    """Send one request to an upstream service.

    Args:
        method: HTTP method
        url: Target URL
        service: Upstream name for logging and metrics (e.g. 'serper', 'nppes')
        timeout: Per-request timeout in seconds

    Returns:
        The response, whatever its status code, or None when the request
        could not be completed. Callers inspect status and headers themselves.
    """
    logger.record_api_call(service)
    headers = {"User-Agent": USER_AGENT, **kwargs.pop("headers", {})}
    try:
        return _request_with_retry(method, url, timeout=timeout, headers=headers, **kwargs)
    except RetryError as e:
        logger.record_lookup_failure(service, "RetriesExhausted")
        logger.warning(f"{service} request failed after retries", url=url, error=str(e))
    except requests.exceptions.RequestException as e:
        logger.record_lookup_failure(service, type(e).__name__)
        logger.warning(f"{service} request error", url=url, error=str(e))
    return None


def parse_json(resp: requests.Response, service: str) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError:
        logger.record_lookup_failure(service, "InvalidJSON")
        logger.warning(f"{service} returned a non-JSON body", status=resp.status_code)
        return None


def is_evidence_url(url: Optional[str]) -> bool:
    """False for search-engine and link-shortener URLs."""
    return bool(url) and not domain_in(url, NON_EVIDENCE_DOMAINS)


def html_to_text(html: str, limit: int = 5000) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template", "svg", "head"]):
        tag.decompose()
    text = " ".join(soup.get_text(" ").split())
    return text[:limit]


def fetch_page_text(
    url: str,
    timeout: float = 5.0,
    byte_limit: int = 100_000,
    text_limit: int = 5000,
    max_redirects: int = 2,
) -> str:
    """Fetch a page and return its visible text, or "" on any failure.

    The transfer is abandoned once `byte_limit` bytes have arrived, and at
    most `max_redirects` redirects are followed.
    """
    if not is_evidence_url(url):
        return ""

    logger.record_api_call("page")
    session = requests.Session()
    session.max_redirects = max_redirects
    try:
        with session.get(url, timeout=timeout, stream=True, headers={"User-Agent": USER_AGENT}) as resp:
            if resp.status_code != 200:
                logger.debug("Page fetch returned non-200", url=url, status=resp.status_code)
                return ""
            content_type = resp.headers.get("Content-Type", "")
            if content_type and "html" not in content_type and "text" not in content_type:
                return ""
            chunks = []
            size = 0
            for chunk in resp.iter_content(chunk_size=8192):
                chunks.append(chunk)
                size += len(chunk)
                if size >= byte_limit:
                    break
            encoding = resp.encoding or "utf-8"
            raw = b"".join(chunks)[:byte_limit]
    except requests.exceptions.RequestException as e:
        logger.record_lookup_failure("page", type(e).__name__)
        logger.debug("Page fetch failed", url=url, error=str(e))
        return ""
    finally:
        session.close()

    return html_to_text(raw.decode(encoding, errors="replace"), text_limit)


def deduplicate_urls(urls: list[str]) -> list[str]:
    """Deduplicate URLs while preserving order."""
    seen = set()
    result = []
    for url in urls:
        if url not in seen:
            seen.add(url)
            result.append(url)
    return result
