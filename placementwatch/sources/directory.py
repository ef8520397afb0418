"""Provider-directory evidence (Healthgrades, Doximity) via site-restricted search."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..google_results import SearchHit, SerperClient
from ..location import extract_location
from ..logger import get_logger
from ..models import EvidenceKind, LookupStatus, OrganizationMention, Source, SourceResult
from ..normalize import contains_phrase, normalize_free_text, normalize_person_name, person_tokens
from ..search import build_person_queries
from .extract import extract_affiliations, extract_labeled_practices, extract_practice_names

logger = get_logger()


@dataclass(frozen=True)
class DirectorySite:
    source: Source
    domain: str
    profile_segments: Tuple[str, ...]
    query_keywords: Tuple[str, ...] = ("optometrist", "OD")


HEALTHGRADES = DirectorySite(
    source=Source.HEALTHGRADES,
    domain="healthgrades.com",
    profile_segments=("/optometrist/", "/ophthalmologist/", "/physician/", "/dentist/"),
)

DOXIMITY = DirectorySite(
    source=Source.DOXIMITY,
    domain="doximity.com",
    profile_segments=("/pub/", "/cv/"),
)


def names_person(hit: SearchHit, full_name: str) -> bool:
    """First and last name both appear as whole words in the hit's title and snippet."""
    tokens = person_tokens(full_name)
    if len(tokens) < 2:
        return False
    text = normalize_free_text(f"{hit.title} {hit.snippet}")
    return contains_phrase(text, tokens[0]) and contains_phrase(text, tokens[-1])


class ProviderDirectoryAdapter:
    def __init__(self, search: SerperClient, site: DirectorySite):
        self.search = search
        self.site = site
        self.source = site.source

    @property
    def configured(self) -> bool:
        return self.search.configured

    def is_profile_url(self, url: str) -> bool:
        return self.site.domain in url and any(seg in url for seg in self.site.profile_segments)

    def find_profile(self, full_name: str) -> Optional[SearchHit]:
        variants = normalize_person_name(full_name)
        if not variants:
            return None
        for query in build_person_queries(variants, list(self.site.query_keywords), site=self.site.domain):
            for hit in self.search.hits(query, num=5):
                if self.is_profile_url(hit.link) and names_person(hit, variants[0]):
                    return hit
        return None

    def find(self, full_name: str, context: Optional[Dict[str, Any]] = None) -> SourceResult:
        if not self.search.available:
            reason = "search API not configured" if not self.search.configured else "search quota exhausted"
            return SourceResult.not_configured(self.source, reason)
        if not normalize_person_name(full_name):
            return SourceResult.not_found(self.source, "could not parse name")

        logger.record_lookup_attempt(self.source.value)
        hit = self.find_profile(full_name)
        if hit is None:
            logger.info(f"No {self.source.value} profile found", name=full_name)
            return SourceResult.not_found(self.source, f"no {self.source.value} profile found")

        text = f"{hit.title}. {hit.snippet}"
        location = extract_location(text) or None
        practices = (
            extract_affiliations(hit.snippet)
            + extract_labeled_practices(hit.snippet)
            + extract_practice_names(text)
        )
        seen = set()
        mentions = []
        for i, practice in enumerate(practices):
            if practice.lower() in seen:
                continue
            seen.add(practice.lower())
            mentions.append(OrganizationMention(
                organization=practice,
                source=self.source,
                url=hit.link,
                location=location,
                kind=EvidenceKind.STRUCTURED,
                current=True if i == 0 else None,
                provenance="profile_snippet",
            ))
        mentions.append(OrganizationMention(
            organization=text,
            source=self.source,
            url=hit.link,
            location=location,
            kind=EvidenceKind.SNIPPET,
            provenance="profile_snippet",
        ))

        logger.record_lookup_success(self.source.value)
        logger.info(f"{self.source.value} profile found", name=full_name, url=hit.link, practices=len(seen))
        return SourceResult(
            source=self.source,
            status=LookupStatus.FOUND,
            mentions=mentions,
            profile_url=hit.link,
            details={"location": str(location) if location else None},
        )
