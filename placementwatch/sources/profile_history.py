"""
Full employment history for a professional-network profile (Netrows API).

The API's payload shape varies between accounts and versions: the history
list, company and date fields all appear under several names. Each way of
finding the history is a separate strategy; they are tried in order and the
first one that yields records wins.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import os

from ..logger import get_logger
from ..models import EmploymentRecord
from ..retry import BreakerRegistry, RateLimiter, is_quota_exhausted
from .common import fetch, parse_json

logger = get_logger()

NETROWS_ENDPOINT = "https://api.netrows.com/v1/people/profile"

EXPERIENCE_KEYS = ("experiences", "employment_history", "positions", "experience", "work_experience")
COMPANY_KEYS = ("company", "company_name", "organization", "companyName", "company_info")
TITLE_KEYS = ("title", "position", "role", "job_title")
START_KEYS = ("start_date", "starts_at", "from", "startDate")
END_KEYS = ("end_date", "ends_at", "to", "endDate")
WRAPPER_KEYS = ("data", "profile", "person", "result")

_USERNAME = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)
_HEADLINE_EMPLOYER = re.compile(r"(?:\bat\b|@)\s+(.+?)(?:\s*[|·•]|$)", re.IGNORECASE)


@dataclass
class ProfileHistory:
    full_name: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    records: List[EmploymentRecord] = field(default_factory=list)
    strategy: Optional[str] = None

    @property
    def current(self) -> Optional[EmploymentRecord]:
        return next((r for r in self.records if r.current), None)


def extract_username(url: Optional[str]) -> Optional[str]:
    m = _USERNAME.search(url or "")
    return m.group(1) if m else None


def _first(data: Dict[str, Any], keys) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _name(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        return _name(_first(value, ("name", "company_name", "title")))
    return None


def _date(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        year = value.get("year")
        if not year:
            return None
        month = value.get("month")
        return f"{year}-{int(month):02d}" if month else str(year)
    text = str(value).strip()
    return text or None


def _record(entry: Any) -> Optional[EmploymentRecord]:
    if not isinstance(entry, dict):
        return None
    organization = _name(_first(entry, COMPANY_KEYS))
    if not organization:
        return None

    end = _date(_first(entry, END_KEYS))
    if end and end.lower() == "present":
        end = None
    flag = entry.get("current", entry.get("is_current"))
    current = flag if isinstance(flag, bool) else end is None
    location = entry.get("location") or entry.get("geo_location")

    return EmploymentRecord(
        organization=organization,
        title=_name(_first(entry, TITLE_KEYS)),
        start=_date(_first(entry, START_KEYS)),
        end=end,
        current=current,
        location=_name(location),
    )


def _records(entries: Any) -> List[EmploymentRecord]:
    if not isinstance(entries, list):
        return []
    return [r for r in (_record(e) for e in entries) if r]


# Strategies: each takes the unwrapped profile dict and returns records.

def experience_list(profile: Dict[str, Any]) -> List[EmploymentRecord]:
    """History as a plain list under one of the experience keys."""
    for key in EXPERIENCE_KEYS:
        records = _records(profile.get(key))
        if records:
            return records
    return []


def nested_experience(profile: Dict[str, Any]) -> List[EmploymentRecord]:
    """History wrapped one level deeper, e.g. {"positions": {"values": [...]}}."""
    for key in EXPERIENCE_KEYS:
        container = profile.get(key)
        if isinstance(container, dict):
            for inner in ("data", "values", "items", "elements"):
                records = _records(container.get(inner))
                if records:
                    return records
    return []


def current_position_fields(profile: Dict[str, Any]) -> List[EmploymentRecord]:
    """Only a current company on the profile itself."""
    organization = _name(_first(profile, ("current_company", "currentCompany", "company", "company_name")))
    if not organization:
        return []
    title = _name(_first(profile, ("job_title", "current_title", "occupation")))
    return [EmploymentRecord(organization=organization, title=title, current=True)]


def headline_employer(profile: Dict[str, Any]) -> List[EmploymentRecord]:
    """Last resort: "Optometrist at Abba Eye Care | ..." in the headline."""
    headline = _name(_first(profile, ("headline", "tagline")))
    if not headline:
        return []
    m = _HEADLINE_EMPLOYER.search(headline)
    if not m:
        return []
    return [EmploymentRecord(organization=m.group(1).strip(), current=True)]


HISTORY_STRATEGIES: List[Callable[[Dict[str, Any]], List[EmploymentRecord]]] = [
    experience_list,
    nested_experience,
    current_position_fields,
    headline_employer,
]


def _unwrap(payload: Any) -> Dict[str, Any]:
    profile = payload if isinstance(payload, dict) else {}
    for _ in range(3):
        if any(key in profile for key in EXPERIENCE_KEYS + ("headline", "full_name")):
            break
        inner = next((profile[k] for k in WRAPPER_KEYS if isinstance(profile.get(k), dict)), None)
        if inner is None:
            break
        profile = inner
    return profile


def parse_profile_payload(payload: Any) -> ProfileHistory:
    profile = _unwrap(payload)
    full_name = _name(_first(profile, ("full_name", "fullName", "name")))
    if not full_name:
        parts = [profile.get("first_name") or profile.get("firstName"), profile.get("last_name") or profile.get("lastName")]
        full_name = " ".join(p for p in parts if p) or None

    history = ProfileHistory(
        full_name=full_name,
        headline=_name(_first(profile, ("headline", "tagline"))),
        location=_name(_first(profile, ("location", "geo_location"))),
    )
    for strategy in HISTORY_STRATEGIES:
        records = strategy(profile)
        if records:
            history.records = records
            history.strategy = strategy.__name__
            break
    return history


class ProfileHistoryClient:
    service = "netrows"

    def __init__(
        self,
        api_key: Optional[str] = None,
        breakers: Optional[BreakerRegistry] = None,
        timeout: float = 15.0,
        delay: float = 0.5,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("NETROWS_API_KEY", "")
        self.breaker = (breakers or BreakerRegistry()).get(self.service)
        self.timeout = timeout
        self.limiter = RateLimiter(delay)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def available(self) -> bool:
        return self.configured and not self.breaker.is_open

    def fetch_history(self, profile_url: str) -> Optional[ProfileHistory]:
        """Full history for a validated profile URL, or None if unavailable."""
        username = extract_username(profile_url)
        if not username or not self.configured or not self.breaker.allow():
            return None

        self.limiter.wait()
        resp = fetch(
            "GET",
            NETROWS_ENDPOINT,
            self.service,
            self.timeout,
            params={"username": username},
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
        )
        if resp is None:
            return None

        data = parse_json(resp, self.service)
        if is_quota_exhausted(resp.status_code, data if data is not None else resp.text):
            self.breaker.trip(f"HTTP {resp.status_code}")
            logger.record_quota_exhausted(self.service)
            logger.error("Profile API quota exhausted, disabling it for this process", status=resp.status_code)
            return None
        if resp.status_code != 200 or not isinstance(data, dict):
            logger.record_lookup_failure(self.service, f"HTTP_{resp.status_code}")
            logger.warning("Profile API request failed", username=username, status=resp.status_code)
            return None
        return parse_profile_payload(data)
