"""General web evidence: search snippets plus the text of the top result pages."""

from typing import Any, Callable, Dict, List, Optional

from ..google_results import SearchHit, SerperClient, filter_evidence_hits
from ..location import extract_location
from ..logger import get_logger
from ..models import EvidenceKind, LookupStatus, OrganizationMention, Source, SourceResult
from ..normalize import domain_in, normalize_person_name
from ..search import build_person_queries
from ..vocab import DIRECTORY_DOMAINS, PROFESSION_QUERY_KEYWORDS
from .common import deduplicate_urls, fetch_page_text, is_evidence_url

logger = get_logger()

MIN_PAGE_TEXT = 50


class WebSearchAdapter:
    source = Source.WEB

    def __init__(
        self,
        search: SerperClient,
        page_fetcher: Optional[Callable[[str], str]] = fetch_page_text,
        max_pages: int = 5,
    ):
        """
        Args:
            search: Shared search client
            page_fetcher: url -> visible page text ("" on failure); None disables scraping
            max_pages: How many top result pages to scrape per person
        """
        self.search = search
        self.page_fetcher = page_fetcher
        self.max_pages = max_pages

    @property
    def configured(self) -> bool:
        return self.search.configured

    def collect_hits(self, variants: List[str]) -> List[SearchHit]:
        hits: List[SearchHit] = []
        for query in build_person_queries(variants, PROFESSION_QUERY_KEYWORDS, alternate_keywords=len(PROFESSION_QUERY_KEYWORDS)):
            results = self.search.hits(query, num=10)
            logger.debug("Web search", query=query, results=len(results))
            hits.extend(results)
        return filter_evidence_hits(hits)

    def scrapeable(self, hits: List[SearchHit]) -> List[str]:
        urls = [
            hit.link for hit in hits
            if hit.link and is_evidence_url(hit.link) and not domain_in(hit.link, DIRECTORY_DOMAINS)
        ]
        return deduplicate_urls(urls)[: self.max_pages]

    def find(self, full_name: str, context: Optional[Dict[str, Any]] = None) -> SourceResult:
        if not self.search.available:
            reason = "search API not configured" if not self.search.configured else "search quota exhausted"
            return SourceResult.not_configured(self.source, reason)

        variants = normalize_person_name(full_name)
        if not variants:
            return SourceResult.not_found(self.source, "could not parse name")

        logger.record_lookup_attempt(self.source.value)
        hits = self.collect_hits(variants)
        if not hits:
            return SourceResult.not_found(self.source, "no search results")

        mentions = [
            OrganizationMention(
                organization=hit.text,
                source=self.source,
                url=hit.link or None,
                location=extract_location(hit.address or hit.snippet) or None,
                kind=EvidenceKind.SNIPPET,
                signal=float(hit.position) if hit.position else None,
                provenance=hit.kind,
            )
            for hit in hits
        ]

        scraped = 0
        if self.page_fetcher is not None:
            for url in self.scrapeable(hits):
                text = self.page_fetcher(url)
                if len(text) <= MIN_PAGE_TEXT:
                    continue
                scraped += 1
                mentions.append(OrganizationMention(
                    organization=text,
                    source=self.source,
                    url=url,
                    kind=EvidenceKind.PAGE_TEXT,
                    provenance="page_content",
                ))

        logger.record_lookup_success(self.source.value)
        logger.info("Web evidence collected", name=full_name, results=len(hits), pages=scraped)
        return SourceResult(
            source=self.source,
            status=LookupStatus.FOUND,
            mentions=mentions,
            details={"results": len(hits), "pages_scraped": scraped},
        )
