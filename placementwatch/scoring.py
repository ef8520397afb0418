"""
Match scoring: does a mention name the client organization, and how sure are we?

Rules, strongest first:

1. The client's normalized name (or a related alias) appears whole inside the
   mention -> High.
2. Two or more of the client's significant tokens (longer than three
   characters, not stopwords) all appear in the mention -> Medium. Never used
   for scraped page text. A single shared word is never enough.

Mentions from directory/aggregator domains are dropped before either rule,
and generic names with no distinguishing words never match. Past employment
caps the tier at Medium. Same-city location raises a tier; a different state
lowers an overlap match but never a full-string one.

The professional-network profile ranking (slug veto plus weighted signals)
also lives here since it decides which person the evidence belongs to.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import unquote, urlparse

from .location import locations_match
from .models import Confidence, EvidenceKind, Location, MatchResult, OrganizationMention, Source
from .normalize import (
    contains_phrase,
    domain_in,
    has_identity,
    match_tokens,
    normalize_free_text,
    normalize_organization_name,
    person_tokens,
    url_domain,
)
from .relatedness import RelatednessIndex
from .vocab import (
    DIRECTORY_DOMAINS,
    FOREIGN_PROFILE_SUBDOMAINS,
    MAJOR_US_CITIES,
    PROFESSION_KEYWORDS,
    PROFILE_MIN_SCORE,
    PROFILE_SCORE_WEIGHTS,
    US_STATES,
)

# Domains an adapter is allowed to cite even though they are on the directory
# list, because the adapter's lookup targets a single person's page there.
SOURCE_HOME_DOMAINS = {
    Source.REGISTRY: {
        "npidb.org", "npino.com", "npiprofile.com", "docinfo.org", "zocdoc.com",
        "vitals.com", "webmd.com", "hhs.gov", "cms.gov",
    },
    Source.NETWORK: {"linkedin.com"},
    Source.DOXIMITY: {"doximity.com"},
    Source.HEALTHGRADES: {"healthgrades.com"},
}


def is_excluded_domain(mention: OrganizationMention) -> bool:
    if not mention.url or not domain_in(mention.url, DIRECTORY_DOMAINS):
        return False
    return not domain_in(mention.url, SOURCE_HOME_DOMAINS.get(mention.source, ()))


def _full_string_match(haystack: str, names: List[str], client_key: str) -> Optional[str]:
    for name in names:
        if contains_phrase(haystack, name):
            return "direct match" if name == client_key else f'alias match ("{name}")'
    return None


def _token_overlap_match(haystack: str, names: List[str]) -> Optional[str]:
    words = set(haystack.split())
    for name in names:
        tokens = match_tokens(name)
        if len(tokens) >= 2 and all(t in words for t in tokens):
            return f"token overlap ({', '.join(tokens)})"
    return None


def _apply_period(result: MatchResult, mention: OrganizationMention) -> MatchResult:
    if mention.current is False:
        period = mention.period()
        note = f"past employer ({period})" if period else "past employer"
        if result.confidence.rank > Confidence.MEDIUM.rank:
            result.confidence = Confidence.MEDIUM
        result.reason = f"{result.reason}; {note}"
    return result


def _apply_location(result: MatchResult, mention: OrganizationMention, client_location: Optional[Location]) -> MatchResult:
    if not client_location or not mention.location:
        return result
    loc = locations_match(mention.location, client_location)
    if loc.match and loc.confidence == Confidence.HIGH:
        result.confidence = result.confidence.raised(ceiling=Confidence.HIGH)
        result.reason = f"{result.reason}; {loc.reason}"
    elif loc.match:
        result.reason = f"{result.reason}; {loc.reason}"
    elif mention.location.state and client_location.state:
        if result.rule != "full_string":
            result.confidence = result.confidence.lowered()
        result.reason = f"{result.reason}; location mismatch, {loc.reason}"
    return result


def score_mention(
    mention: OrganizationMention,
    client_name: str,
    index: RelatednessIndex,
    client_location: Optional[Location] = None,
) -> MatchResult:
    """
    Score one mention against one client organization.

    Args:
        mention: Evidence produced by an adapter
        client_name: Client organization from the submission
        index: Relatedness index used to expand the client into aliases
        client_location: Optional client location for corroboration

    Returns:
        MatchResult; `match` is False with a reason when nothing applies
    """
    if is_excluded_domain(mention):
        return MatchResult.no_match(f"{url_domain(mention.url)} is a directory/aggregator domain", mention)

    names = index.aliases_for(client_name)
    if not names:
        return MatchResult.no_match("client name has no distinguishing words", mention)
    client_key = names[0]

    structured = mention.kind == EvidenceKind.STRUCTURED
    if structured:
        haystack = normalize_organization_name(mention.organization)
        if not has_identity(haystack):
            return MatchResult.no_match("mention names a generic organization", mention)
    else:
        haystack = normalize_free_text(mention.organization)

    reason = _full_string_match(haystack, names, client_key)
    if reason:
        result = MatchResult(True, Confidence.HIGH, reason, mention, matched_name=mention.organization, rule="full_string")
    else:
        # No token overlap for scraped page text.
        if mention.kind != EvidenceKind.PAGE_TEXT:
            reason = _token_overlap_match(haystack, names)
        if not reason:
            return MatchResult.no_match(f'no mention of "{client_name}"', mention)
        result = MatchResult(True, Confidence.MEDIUM, reason, mention, matched_name=mention.organization, rule="token_overlap")

    result = _apply_period(result, mention)
    return _apply_location(result, mention, client_location)


def best_match(
    mentions: Iterable[OrganizationMention],
    client_name: str,
    index: RelatednessIndex,
    client_location: Optional[Location] = None,
) -> MatchResult:
    """Highest-tier match across mentions; the earliest mention wins ties."""
    best: Optional[MatchResult] = None
    checked = 0
    for mention in mentions:
        checked += 1
        result = score_mention(mention, client_name, index, client_location)
        if result.match and (best is None or result.confidence.rank > best.confidence.rank):
            best = result
    if best is None:
        return MatchResult.no_match(f'no match for "{client_name}" in {checked} mention(s)')
    return best


# Professional-network profile ranking

_PROFILE_SLUG = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)
_SLUG_ID_SUFFIX = re.compile(r"-(?:(?=[0-9a-f]*\d)[0-9a-f]{6,}|\d+)$")
_SLUG_NOISE = {"od", "md", "dr", "do", "phd", "faao", "optometrist", "optometry", "eye", "doctor"}
_STATE_ABBREVIATION = re.compile(r"\b(?:%s)\b" % "|".join(US_STATES))
_STATE_NAMES = [name.lower() for name in US_STATES.values()]


@dataclass
class ProfileCandidate:
    url: str
    title: str
    snippet: str
    score: int
    signals: List[str] = field(default_factory=list)


def profile_slug_parts(url: Optional[str]) -> List[str]:
    """Name-like parts of a profile URL slug, trailing random ids removed."""
    m = _PROFILE_SLUG.search(url or "")
    if not m:
        return []
    slug = unquote(m.group(1)).lower().strip("-")
    previous = None
    while previous != slug:
        previous = slug
        slug = _SLUG_ID_SUFFIX.sub("", slug)
    return [p for p in person_tokens(slug) if len(p) > 1]


def _part_matches(part: str, token: str) -> bool:
    if part == token:
        return True
    if len(part) >= 3 and token.startswith(part):
        return True
    return len(token) >= 3 and part.startswith(token)


def slug_matches_name(url: Optional[str], name: str) -> bool:
    """
    Hard veto check: the slug must carry the person's first and last name.

    When the name has middle names, a slug with a different name part
    between first and last names someone else and is rejected too.
    """
    parts = profile_slug_parts(url)
    words = name.split()
    if not parts or len(words) < 2:
        return False
    first = person_tokens(words[0])
    last = person_tokens(words[-1])
    middle = [t for w in words[1:-1] for t in person_tokens(w)]
    if not first or not last:
        return False
    first = first[0]

    first_at = next((i for i, p in enumerate(parts) if _part_matches(p, first)), None)
    last_at = next((i for i, p in enumerate(parts) if any(_part_matches(p, t) for t in last)), None)

    if first_at is None or last_at is None or first_at == last_at:
        joined = "".join(parts)
        return joined.startswith(first) and any(len(t) >= 3 and t in joined[len(first):] for t in last)

    if middle:
        low, high = sorted((first_at, last_at))
        known = [first] + middle + last
        for part in parts[low + 1:high]:
            if part in _SLUG_NOISE or len(part) <= 2:
                continue
            if not any(_part_matches(part, k) for k in known):
                return False
    return True


def is_domestic_profile(url: str, text: str) -> bool:
    host = urlparse(url).netloc.lower()
    if host.startswith("www.") or host == "linkedin.com":
        return True
    lowered = text.lower()
    if "united states" in lowered or _STATE_ABBREVIATION.search(text):
        return True
    if any(re.search(rf"\b{re.escape(s)}\b", lowered) for s in _STATE_NAMES):
        return True
    return any(city in lowered for city in MAJOR_US_CITIES)


def is_foreign_profile(url: str) -> bool:
    host = urlparse(url).netloc.lower()
    subdomain = host.split(".", 1)[0] if host.count(".") >= 2 else ""
    return subdomain in FOREIGN_PROFILE_SUBDOMAINS


def score_profile_candidate(url: str, title: str, snippet: str, name: str) -> Optional[ProfileCandidate]:
    """Weighted score for a profile search hit; None when the slug veto rejects it."""
    if not slug_matches_name(url, name):
        return None

    weights = PROFILE_SCORE_WEIGHTS
    score = weights["slug_match"]
    signals = ["slug"]
    text = f"{title} {snippet}"
    lowered = text.lower()

    tokens = person_tokens(name)
    title_lower = (title or "").lower()
    if tokens and tokens[0] in title_lower and tokens[-1] in title_lower:
        score += weights["title_name_match"]
        signals.append("title_name")
    if any(keyword in lowered for keyword in PROFESSION_KEYWORDS):
        score += weights["profession_keyword"]
        signals.append("profession")
    if is_domestic_profile(url, text):
        score += weights["domestic_geography"]
        signals.append("domestic")
    if is_foreign_profile(url):
        score -= weights["foreign_locale_penalty"]
        signals.append("foreign_locale")

    return ProfileCandidate(url=url, title=title or "", snippet=snippet or "", score=score, signals=signals)


def select_profile_candidate(
    candidates: Iterable[ProfileCandidate],
    min_score: int = PROFILE_MIN_SCORE,
) -> Optional[ProfileCandidate]:
    """Top-ranked candidate, or None if even the best is under the floor."""
    best = None
    for candidate in candidates:
        if best is None or candidate.score > best.score:
            best = candidate
    if best is None or best.score < min_score:
        return None
    return best
