"""
Google results via the Serper search API.

Every search-backed source (web, network, directories, registry harvest and
enrichment) shares one SerperClient, so one quota breaker covers them all.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import os

from .logger import get_logger
from .normalize import canonical_url
from .retry import BreakerRegistry, RateLimiter, is_quota_exhausted
from .sources.common import fetch, is_evidence_url, parse_json

logger = get_logger()

SERPER_ENDPOINT = "https://google.serper.dev/search"


@dataclass
class SearchHit:
    title: str
    snippet: str
    link: str
    kind: str = "organic"  # organic, local_pack, knowledge_graph
    position: int = 0
    address: Optional[str] = None

    @property
    def text(self) -> str:
        return " ".join(p for p in (self.title, self.snippet, self.address) if p)


class SerperClient:
    service = "serper"

    def __init__(
        self,
        api_key: Optional[str] = None,
        breakers: Optional[BreakerRegistry] = None,
        timeout: float = 10.0,
        delay: float = 0.5,
        limiter: Optional[RateLimiter] = None,
    ):
        """
        Args:
            api_key: Serper API key (or read from SERPER_API_KEY env var)
            breakers: Shared breaker registry; quota trips latch there
            timeout: Request timeout in seconds
            delay: Minimum seconds between searches
        """
        self.api_key = api_key if api_key is not None else os.getenv("SERPER_API_KEY", "")
        self.breaker = (breakers or BreakerRegistry()).get(self.service)
        self.timeout = timeout
        self.limiter = limiter or RateLimiter(delay)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def available(self) -> bool:
        return self.configured and not self.breaker.is_open

    def search(self, query: str, num: int = 10) -> Optional[Dict[str, Any]]:
        """
        Run one search and return the raw Serper payload.

        Returns None when unconfigured, when the breaker is open, or on any
        transport, status or payload failure.
        """
        if not self.configured:
            return None
        if not self.breaker.allow():
            logger.debug("Search skipped, quota breaker open", query=query)
            return None

        self.limiter.wait()
        resp = fetch(
            "POST",
            SERPER_ENDPOINT,
            self.service,
            self.timeout,
            json={"q": query, "num": num},
            headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
        )
        if resp is None:
            return None

        data = parse_json(resp, self.service)
        if is_quota_exhausted(resp.status_code, data if data is not None else resp.text):
            self.breaker.trip(f"HTTP {resp.status_code}")
            logger.record_quota_exhausted(self.service)
            logger.error("Search quota exhausted, disabling search for this process", status=resp.status_code)
            return None
        if resp.status_code != 200 or not isinstance(data, dict):
            logger.record_lookup_failure(self.service, f"HTTP_{resp.status_code}")
            logger.warning("Search request failed", query=query, status=resp.status_code)
            return None
        if data.get("error") or (data.get("message") and "organic" not in data):
            logger.record_lookup_failure(self.service, "APIError")
            logger.warning("Search API error", query=query, error=str(data.get("error") or data.get("message")))
            return None
        return data

    def hits(self, query: str, num: int = 10) -> List[SearchHit]:
        data = self.search(query, num)
        return parse_search_results(data) if data else []


def parse_search_results(data: Dict[str, Any]) -> List[SearchHit]:
    """Flatten organic results, the local pack and the knowledge graph."""
    hits = []
    for i, item in enumerate(data.get("organic") or [], 1):
        hits.append(SearchHit(
            title=item.get("title") or "",
            snippet=item.get("snippet") or "",
            link=item.get("link") or "",
            kind="organic",
            position=item.get("position") or i,
        ))
    for i, place in enumerate(data.get("places") or [], 1):
        hits.append(SearchHit(
            title=place.get("title") or "",
            snippet=" ".join(p for p in (place.get("category"), place.get("address")) if p),
            link=place.get("website") or "",
            kind="local_pack",
            position=i,
            address=place.get("address"),
        ))
    graph = data.get("knowledgeGraph")
    if graph:
        hits.append(SearchHit(
            title=graph.get("title") or "",
            snippet=" ".join(p for p in (graph.get("type"), graph.get("description")) if p),
            link=graph.get("website") or graph.get("descriptionLink") or "",
            kind="knowledge_graph",
            address=(graph.get("attributes") or {}).get("Address"),
        ))
    return hits


def filter_evidence_hits(hits: List[SearchHit]) -> List[SearchHit]:
    """Drop search-engine/shortener links and repeated URLs, keeping order."""
    seen = set()
    filtered = []
    for hit in hits:
        if hit.link and not is_evidence_url(hit.link):
            continue
        key = canonical_url(hit.link) if hit.link else f"{hit.kind}:{hit.title}"
        if key not in seen:
            seen.add(key)
            filtered.append(hit)
    return filtered
