"""
City/state extraction and comparison.

Location is corroborating evidence only: the scorer uses it to adjust a tier,
never to create a match on its own.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from .models import Confidence, Location
from .normalize import normalize_text
from .vocab import US_STATES

_STATE_BY_NAME = {name.lower(): code for code, name in US_STATES.items()}
_FULL_NAMES = "|".join(re.escape(n) for n in sorted(US_STATES.values(), key=len, reverse=True))

_CITY = r"([A-Za-z][A-Za-z .'\-]{0,60}?)"
# Abbreviations must be upper-case so "Springfield, in the..." is not Indiana.
_CITY_ABBREVIATION = re.compile(_CITY + r"\s*,\s*([A-Z]{2})\b")
_CITY_FULL_STATE = re.compile(_CITY + r"\s*,\s*(" + _FULL_NAMES + r")\b", re.IGNORECASE)
_FULL_STATE = re.compile(r"\b(" + _FULL_NAMES + r")\b", re.IGNORECASE)

_CITY_SEPARATORS = re.compile(r"[|·•:;–—]|\s-\s")
_LEAD_WORDS = {
    "in", "at", "near", "of", "the", "and", "or", "located", "from", "office",
    "practice", "serving", "based", "optometrist", "ophthalmologist", "doctor",
}
_MAX_CITY_WORDS = 3


@dataclass
class LocationMatch:
    match: bool
    confidence: Optional[Confidence]
    reason: str


def state_code(state: Optional[str]) -> Optional[str]:
    if not state:
        return None
    state = state.strip()
    if state.upper() in US_STATES:
        return state.upper()
    return _STATE_BY_NAME.get(state.lower())


def _clean_city(raw: str) -> Optional[str]:
    piece = _CITY_SEPARATORS.split(raw)[-1]
    words = piece.split()
    lead = [i for i, w in enumerate(words) if w.lower().strip(".") in _LEAD_WORDS]
    if lead:
        words = words[lead[-1] + 1:]
    words = words[-_MAX_CITY_WORDS:]
    city = " ".join(words).strip(" .-'")
    return city or None


def extract_location(text: Optional[str]) -> Location:
    """
    Find a "City, ST" (or "City, State") location in free text.

    The last occurrence wins. Without one, a bare full state name anywhere in
    the text gives a state-only location.
    """
    if not text:
        return Location()

    found = []
    for m in _CITY_ABBREVIATION.finditer(text):
        if m.group(2) in US_STATES:
            found.append((m.end(), m.group(1), m.group(2)))
    for m in _CITY_FULL_STATE.finditer(text):
        found.append((m.end(), m.group(1), _STATE_BY_NAME[m.group(2).lower()]))

    if found:
        _, city, state = max(found, key=lambda f: f[0])
        return Location(city=_clean_city(city), state=state)

    names = _FULL_STATE.findall(text)
    if names:
        return Location(city=None, state=_STATE_BY_NAME[names[-1].lower()])
    return Location()


def _coerce(value: Union[Location, dict, None]) -> Location:
    if value is None:
        return Location()
    if isinstance(value, Location):
        return value
    return Location(city=value.get("city"), state=value.get("state"))


def locations_match(a: Union[Location, dict, None], b: Union[Location, dict, None]) -> LocationMatch:
    a, b = _coerce(a), _coerce(b)
    state_a, state_b = state_code(a.state), state_code(b.state)

    if not state_a or not state_b:
        return LocationMatch(False, None, "state unknown")
    if state_a != state_b:
        return LocationMatch(False, None, f"different states ({state_a} vs {state_b})")

    city_a = normalize_text(a.city or "")
    city_b = normalize_text(b.city or "")
    if city_a and city_b and (city_a == city_b or city_a in city_b or city_b in city_a):
        return LocationMatch(True, Confidence.HIGH, f"same city and state ({a.city}, {state_a})")
    return LocationMatch(True, Confidence.LOW, f"same state ({state_a}), different/unknown city")
