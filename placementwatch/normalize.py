import re
import unicodedata
from dataclasses import dataclass
from urllib.parse import urlparse

from .vocab import (
    ALTERNATE_NAME_MARKERS,
    CREDENTIALS,
    GENERATIONAL_SUFFIXES,
    HONORIFICS,
    LEGAL_SUFFIXES,
    MIN_SIGNIFICANT_TOKEN_LENGTH,
    ORGANIZATION_CREDENTIAL_SUFFIXES,
    STOPWORDS,
)


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def fold_ascii(s: str) -> str:
    """Drop accents so "Née" and "Nee" compare equal."""
    return unicodedata.normalize("NFKD", s).encode("ascii", "ignore").decode("ascii")


def _alternation(words: list[str]) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


def unique_in_order(items: list[str]) -> list[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


# Person names

_ALTERNATE_NAME = re.compile(
    r"\(\s*(?:%s)(?:\s+name)?\s*:?\s+([^)]+)\)" % _alternation(ALTERNATE_NAME_MARKERS),
    re.IGNORECASE,
)
_BRACKETED = re.compile(r"\([^)]*\)|\[[^\]]*\]|\{[^}]*\}")
_LEADING_HONORIFIC = re.compile(r"^(?:%s)\s+" % _alternation(HONORIFICS), re.IGNORECASE)
_CREDENTIALS = _alternation(CREDENTIALS + GENERATIONAL_SUFFIXES)
# After a comma any casing is a credential; after a space only the listed
# casing is, so surnames such as "Do" survive.
_TRAILING_CREDENTIAL_AFTER_COMMA = re.compile(r",\s*(?:%s)\.?\s*,?\s*$" % _CREDENTIALS, re.IGNORECASE)
_TRAILING_CREDENTIAL = re.compile(r"\s+(?:%s)\.?\s*,?\s*$" % _CREDENTIALS)


@dataclass
class PersonName:
    first: str
    last: str
    full: str


def _strip_person_decorations(name: str) -> str:
    # Credentials stack ("OD, FAAO, FCOVD"), so strip until nothing changes.
    previous = None
    while previous != name:
        previous = name
        name = _LEADING_HONORIFIC.sub("", name).strip()
        name = _TRAILING_CREDENTIAL_AFTER_COMMA.sub("", name).strip()
        name = _TRAILING_CREDENTIAL.sub("", name).strip()
        name = name.strip(", ").strip()
    return " ".join(name.split())


def normalize_person_name(raw: str | None) -> list[str]:
    """
    Turn a CRM person name into an ordered list of search variants.

    The first variant is the cleaned full name. Further variants cover a
    former family name given in parentheses, each segment of a hyphenated
    family name, and first + last with middle names dropped. Returns []
    when nothing searchable is left.
    """
    if not raw or not raw.strip():
        return []

    alternate = _ALTERNATE_NAME.search(raw)
    name = _strip_person_decorations(_BRACKETED.sub(" ", raw))

    if "," in name:
        family, _, given = name.partition(",")
        if family.strip() and given.strip():
            name = f"{given.strip()} {family.strip()}"
        name = _strip_person_decorations(name.replace(",", " "))

    tokens = name.split()
    if not tokens or len(name) <= 2:
        return []

    variants = [name]

    if alternate:
        alt_tokens = _strip_person_decorations(alternate.group(1)).split()
        if alt_tokens and len(tokens) > 1:
            variants.append(f"{tokens[0]} {alt_tokens[-1]}")

    family = tokens[-1]
    if "-" in family and len(tokens) > 1:
        for segment in family.split("-"):
            if len(segment) > 2:
                variants.append(" ".join(tokens[:-1] + [segment]))

    if len(tokens) > 2:
        variants.append(f"{tokens[0]} {tokens[-1]}")

    return unique_in_order(variants)


def parse_person_name(raw: str | None) -> PersonName | None:
    variants = normalize_person_name(raw)
    if not variants:
        return None
    tokens = variants[0].split()
    return PersonName(first=tokens[0], last=tokens[-1] if len(tokens) > 1 else "", full=variants[0])


def person_tokens(name: str) -> list[str]:
    """Lower-case alphabetic tokens; apostrophes joined, hyphens split."""
    folded = fold_ascii(name).lower().replace("'", "").replace("’", "")
    return [t for t in re.split(r"[^a-z]+", folded) if t]


# Organization names

_DASH_ACRONYM = re.compile(r"\s+[-–—]\s*[A-Z]{2,6}\s*$")
_APOSTROPHES = re.compile(r"['’`]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_TRAILING_SUFFIXES = LEGAL_SUFFIXES | ORGANIZATION_CREDENTIAL_SUFFIXES


def normalize_free_text(text: str | None) -> str:
    """Lower-case, accent-free, punctuation-free text for phrase containment."""
    if not text:
        return ""
    text = fold_ascii(text).lower()
    text = _APOSTROPHES.sub("", text).replace("&", " and ")
    return " ".join(_NON_ALNUM.sub(" ", text).split())


def normalize_organization_name(raw: str | None) -> str:
    if not raw:
        return ""
    name = _BRACKETED.sub(" ", raw).strip()
    name = _DASH_ACRONYM.sub("", name)
    tokens = normalize_free_text(name.replace(".", "")).split()
    while len(tokens) > 1 and tokens[-1] in _TRAILING_SUFFIXES:
        tokens.pop()
    if len(tokens) > 1 and tokens[0] == "the":
        tokens.pop(0)
    return " ".join(tokens)


def significant_tokens(name: str | None) -> list[str]:
    """Tokens of the normalized name that are not industry/geographic stopwords."""
    return [t for t in normalize_organization_name(name).split() if t not in STOPWORDS]


def has_identity(name: str | None) -> bool:
    """False for names like "Vision Associates" that denote no specific entity."""
    return bool(significant_tokens(name))


def match_tokens(name: str | None) -> list[str]:
    """Significant tokens long enough to count towards token-overlap matching."""
    return unique_in_order([t for t in significant_tokens(name) if len(t) >= MIN_SIGNIFICANT_TOKEN_LENGTH])


def contains_phrase(haystack: str, needle: str) -> bool:
    """Whole-word containment of one normalized string in another."""
    if not needle or not haystack:
        return False
    return f" {needle} " in f" {haystack} "


# URLs

def canonical_url(url: str) -> str:
    parsed = urlparse(url)
    path = parsed.path.rstrip("/")
    # Drop query and fragment to avoid source-specific tracking
    return f"{parsed.scheme}://{parsed.netloc}{path}" if parsed.scheme and parsed.netloc else path


def url_domain(url: str | None) -> str:
    if not url:
        return ""
    netloc = urlparse(url if "://" in url else f"https://{url}").netloc.lower()
    netloc = netloc.rsplit("@", 1)[-1].split(":", 1)[0]
    return netloc[4:] if netloc.startswith("www.") else netloc


def domain_in(url: str | None, domains) -> bool:
    """True if the URL's host is one of `domains` or a subdomain of one."""
    host = url_domain(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)
