"""
Professional-network (LinkedIn) evidence via site-restricted search.

Profile hits are vetted by the slug veto and ranked; only the top candidate
above the score floor is used. Employment comes from the profile-history API
when it is configured and returns records, otherwise from the search title
and snippet.
"""

import re
from typing import Any, Dict, List, Optional

from ..google_results import SerperClient
from ..logger import get_logger
from ..models import EmploymentRecord, EvidenceKind, LookupStatus, OrganizationMention, Source, SourceResult
from ..normalize import normalize_organization_name, normalize_person_name
from ..scoring import ProfileCandidate, score_profile_candidate, select_profile_candidate
from ..search import build_person_queries
from .profile_history import ProfileHistoryClient

logger = get_logger()

PROFILE_SITE = "linkedin.com/in"
QUERY_KEYWORDS = ["optometrist", "OD"]

_LINKEDIN_SUFFIX = re.compile(r"\s*[|–-]\s*LinkedIn\s*$", re.IGNORECASE)
_TITLE_AT = re.compile(r"[-–]\s*(.+?)\s+at\s+(.+)$")
_CURRENT = re.compile(r"\b(?:Current|Present)\s*:\s*(.+?)\s+at\s+(.+?)(?=\s*(?:[|·•;]|\.\s|\.$|Previous|Past|Former|Education|$))", re.IGNORECASE)
_PREVIOUS = re.compile(r"\b(?:Previous|Past|Former)\s*:\s*(?:(.+?)\s+at\s+)?(.+?)(?=\s*(?:[|·•;]|\.\s|\.$|Education|$))", re.IGNORECASE)
_EXPERIENCE = re.compile(r"\bExperience\s*:\s*(.+?)(?=\s*(?:[|.;]|Education|Location|$))", re.IGNORECASE)


def _title_at_company(title: str, snippet: str) -> List[EmploymentRecord]:
    """"Jane Doe - Optometrist at Abba Eye Care"."""
    m = _TITLE_AT.search(title)
    if not m:
        return []
    return [EmploymentRecord(organization=m.group(2).strip(), title=m.group(1).strip(), current=True)]


def _dash_parts(title: str, snippet: str) -> List[EmploymentRecord]:
    """"Jane Doe - Optometrist - Abba Eye Care"."""
    parts = [p.strip() for p in re.split(r"\s+[-–]\s+", title) if p.strip()]
    if len(parts) < 3:
        return []
    return [EmploymentRecord(organization=parts[-1], title=parts[1], current=True)]


def _labeled_positions(title: str, snippet: str) -> List[EmploymentRecord]:
    """"Current: Optometrist at X" and "Previous: Y" in the snippet."""
    records = []
    for m in _CURRENT.finditer(snippet):
        records.append(EmploymentRecord(organization=m.group(2).strip(), title=m.group(1).strip(), current=True))
    for m in _PREVIOUS.finditer(snippet):
        records.append(EmploymentRecord(
            organization=m.group(2).strip(),
            title=m.group(1).strip() if m.group(1) else None,
            current=False,
        ))
    return records


def _experience_list(title: str, snippet: str) -> List[EmploymentRecord]:
    """"Experience: Abba Eye Care · Mercy Health" (first entry is current)."""
    m = _EXPERIENCE.search(snippet)
    if not m:
        return []
    names = [n.strip() for n in re.split(r"\s*[·•,]\s*", m.group(1)) if n.strip()]
    return [EmploymentRecord(organization=n, current=(i == 0)) for i, n in enumerate(names)]


SNIPPET_STRATEGIES = [_title_at_company, _dash_parts, _labeled_positions, _experience_list]


def parse_profile_snippet(title: Optional[str], snippet: Optional[str]) -> List[EmploymentRecord]:
    """Employment records recovered from a profile search hit.

    Every strategy contributes; records are deduplicated by normalized
    organization, keeping the first (and so the most specific) occurrence.
    """
    title = _LINKEDIN_SUFFIX.sub("", title or "").strip()
    snippet = snippet or ""
    seen = set()
    records = []
    for strategy in SNIPPET_STRATEGIES:
        for record in strategy(title, snippet):
            key = normalize_organization_name(record.organization)
            if key and key not in seen:
                seen.add(key)
                records.append(record)
    return records


class ProfessionalNetworkAdapter:
    source = Source.NETWORK

    def __init__(self, search: SerperClient, history: Optional[ProfileHistoryClient] = None):
        self.search = search
        self.history = history

    @property
    def configured(self) -> bool:
        return self.search.configured

    def _candidates(self, variants: List[str], full_name: str) -> List[ProfileCandidate]:
        # The middle-dropped variant widens the search; the veto still uses the full name.
        validation_name = variants[0]
        candidates: Dict[str, ProfileCandidate] = {}
        for query in build_person_queries(variants, QUERY_KEYWORDS, site=PROFILE_SITE):
            for hit in self.search.hits(query, num=10):
                if PROFILE_SITE not in hit.link or hit.link in candidates:
                    continue
                candidate = score_profile_candidate(hit.link, hit.title, hit.snippet, validation_name)
                if candidate is None:
                    logger.debug("Profile rejected by slug check", url=hit.link, name=full_name)
                    continue
                candidates[hit.link] = candidate
        return list(candidates.values())

    def find(self, full_name: str, context: Optional[Dict[str, Any]] = None) -> SourceResult:
        if not self.search.available:
            reason = "search API not configured" if not self.search.configured else "search quota exhausted"
            return SourceResult.not_configured(self.source, reason)

        variants = normalize_person_name(full_name)
        if not variants:
            return SourceResult.not_found(self.source, "could not parse name")

        logger.record_lookup_attempt(self.source.value)
        candidates = self._candidates(variants, full_name)
        best = select_profile_candidate(candidates)
        if best is None:
            top = max((c.score for c in candidates), default=None)
            logger.info("No profile above score floor", name=full_name, candidates=len(candidates), top_score=top)
            return SourceResult.not_found(self.source, "no profile met the quality threshold")

        records: List[EmploymentRecord] = []
        data_source = "search_snippet"
        if self.history is not None and self.history.available:
            history = self.history.fetch_history(best.url)
            if history is not None and history.records:
                records = history.records
                data_source = f"netrows:{history.strategy}"
            elif history is not None:
                logger.warning("Profile history came back empty, using search snippet", url=best.url)
        if not records:
            records = parse_profile_snippet(best.title, best.snippet)

        mentions = [
            OrganizationMention(
                organization=r.organization,
                source=self.source,
                url=best.url,
                kind=EvidenceKind.STRUCTURED,
                start=r.start,
                end=r.end,
                current=r.current,
                signal=float(best.score),
                provenance=data_source,
                title=r.title,
            )
            for r in records
        ]
        mentions.append(OrganizationMention(
            organization=f"{best.title} {best.snippet}",
            source=self.source,
            url=best.url,
            kind=EvidenceKind.SNIPPET,
            signal=float(best.score),
            provenance="search_snippet",
        ))

        logger.record_lookup_success(self.source.value)
        logger.info("Profile found", name=full_name, url=best.url, score=best.score, positions=len(records))
        return SourceResult(
            source=self.source,
            status=LookupStatus.FOUND,
            mentions=mentions,
            profile_url=best.url,
            details={"data_source": data_source, "score": best.score, "signals": best.signals},
        )
