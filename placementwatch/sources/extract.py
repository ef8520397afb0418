"""Pattern rules that pull practice and employer names out of snippets."""

import re

from ..normalize import has_identity, normalize_organization_name, unique_in_order
from ..vocab import ENRICHMENT_NOISE_WORDS, PRACTICE_NAME_SUFFIXES

_NAME_WORD = r"[A-Z][A-Za-z0-9&'’.\-]*"
_SUFFIXES = "|".join(re.escape(s) for s in sorted(PRACTICE_NAME_SUFFIXES, key=len, reverse=True))

# "Abba Eye Care", "Eye Associates of Rockford", "Smith & Jones Optometry"
_PRACTICE_NAME = re.compile(
    rf"((?:{_NAME_WORD}\s+(?:(?:of|the|and|&)\s+)?){{1,4}}(?:{_SUFFIXES})\b"
    rf"(?:\s+(?:of|at)\s+{_NAME_WORD}(?:\s+{_NAME_WORD})?)?)"
)

# "works at Abba Eye Care", "affiliated with Mercy Health"
_AFFILIATION = re.compile(
    r"\b(?:works at|working at|practices at|practicing at|employed by|works for|"
    r"joined|affiliated with|associated with|sees patients at)\s+"
    rf"((?:the\s+)?{_NAME_WORD}(?:\s+(?:of|and|&|the|{_NAME_WORD})){{0,6}})"
)

# "Office: Abba Eye Care", "Practice: ...", "Location: ..."
_LABELED = re.compile(
    r"\b(?:Office|Practice|Location|Employer|Organization|Hospital Affiliation)s?\s*:\s*"
    r"([^|·•\n;:]+?)(?=\s*(?:[|·•\n;]|\s-\s|\.\s|\.$|$))"
)

_TRAILING_CONNECTORS = {"of", "and", "the", "at", "&", "in"}


def clean_organization(raw: str) -> str:
    """Trim punctuation, leading filler words and dangling connectors."""
    words = raw.strip(" .,;:-|'\"").split()
    while words and (words[0].lower() in ENRICHMENT_NOISE_WORDS or words[0].lower() in _TRAILING_CONNECTORS):
        words.pop(0)
    while words and words[-1].lower() in _TRAILING_CONNECTORS:
        words.pop()
    return " ".join(words).strip(" .,;:-")


def _keep(name: str) -> bool:
    if not name or len(name) > 80:
        return False
    if any(w.lower().strip(".,") in ENRICHMENT_NOISE_WORDS for w in name.split()):
        return False
    return has_identity(name)


def _dedupe(names: list[str], limit: int) -> list[str]:
    seen = set()
    out = []
    for name in names:
        key = normalize_organization_name(name)
        if key and key not in seen:
            seen.add(key)
            out.append(name)
    return out[:limit]


def extract_practice_names(text: str | None, limit: int = 25) -> list[str]:
    """Capitalized business names ending in an eye/vision/medical suffix."""
    if not text:
        return []
    names = [clean_organization(m.group(1)) for m in _PRACTICE_NAME.finditer(text)]
    return _dedupe([n for n in names if _keep(n)], limit)


def extract_affiliations(text: str | None, limit: int = 10) -> list[str]:
    """Organizations introduced by "works at", "affiliated with" and similar."""
    if not text:
        return []
    names = [clean_organization(m.group(1)) for m in _AFFILIATION.finditer(text)]
    return _dedupe([n for n in names if _keep(n)], limit)


def extract_labeled_practices(text: str | None, limit: int = 10) -> list[str]:
    """Values of "Office:", "Practice:" and "Location:" labels."""
    if not text:
        return []
    names = [clean_organization(m.group(1)) for m in _LABELED.finditer(text)]
    return _dedupe([n for n in names if _keep(n)], limit)


def extract_organizations(text: str | None, limit: int = 25) -> list[str]:
    """All of the above, strongest pattern first."""
    names = extract_affiliations(text) + extract_labeled_practices(text) + extract_practice_names(text)
    return _dedupe(unique_in_order(names), limit)


# "owned by AEG Vision", "a subsidiary of ...", "Acme Eye Care, part of ..."
_PARENT = re.compile(
    r"\b(?:owned by|subsidiary of|part of|division of|member of|acquired by|a brand of|"
    r"parent company(?: is|,)?)\s+"
    rf"((?:the\s+)?{_NAME_WORD}(?:\s+(?:of|and|&|{_NAME_WORD})){{0,5}})"
)


def extract_parent_companies(text: str | None, limit: int = 10) -> list[str]:
    """Organizations named as an owner or parent ("owned by X", "part of X")."""
    if not text:
        return []
    names = [clean_organization(m.group(1)) for m in _PARENT.finditer(text)]
    return _dedupe([n for n in names if _keep(n)], limit)
