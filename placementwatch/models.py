"""
Core record types shared by the adapters, scorer and monitoring run.

Store records stay plain dicts on disk; these dataclasses are the in-memory
shapes the matching code works with.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Source(str, Enum):
    """Evidence source identifiers, as written on alerts."""

    PIPELINE = "Pipeline"
    REGISTRY = "NPI"
    NETWORK = "LinkedIn"
    DOXIMITY = "Doximity"
    HEALTHGRADES = "Healthgrades"
    WEB = "Google"


class Confidence(str, Enum):
    CONFIRMED = "Confirmed"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    def lowered(self) -> "Confidence":
        """One tier down, bottoming out at Low."""
        order = [Confidence.CONFIRMED, Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW]
        return order[min(order.index(self) + 1, len(order) - 1)]

    def raised(self, ceiling: "Confidence") -> "Confidence":
        """One tier up, never above ceiling."""
        order = [Confidence.LOW, Confidence.MEDIUM, Confidence.HIGH, Confidence.CONFIRMED]
        bumped = order[min(order.index(self) + 1, len(order) - 1)]
        return bumped if bumped.rank <= ceiling.rank else self


_CONFIDENCE_RANK = {
    Confidence.LOW: 1,
    Confidence.MEDIUM: 2,
    Confidence.HIGH: 3,
    Confidence.CONFIRMED: 4,
}


class AlertStatus(str, Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    CONFIRMED = "confirmed"
    DISMISSED = "dismissed"


class EvidenceKind(str, Enum):
    """How the organization text of a mention was obtained."""

    STRUCTURED = "structured"  # an employer/practice field
    SNIPPET = "snippet"  # search result title and snippet
    PAGE_TEXT = "page_text"  # scraped page body


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_CONFIGURED = "not_configured"


@dataclass
class Location:
    city: Optional[str] = None
    state: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.city or self.state)

    def __str__(self) -> str:
        return ", ".join(p for p in (self.city, self.state) if p)


@dataclass
class EmploymentRecord:
    """One entry of a profile's employment history."""

    organization: str
    title: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    current: Optional[bool] = None
    location: Optional[str] = None


@dataclass
class OrganizationMention:
    """A single piece of evidence linking a person to an organization."""

    organization: str
    source: Source
    url: Optional[str] = None
    location: Optional[Location] = None
    kind: EvidenceKind = EvidenceKind.SNIPPET
    start: Optional[str] = None
    end: Optional[str] = None
    current: Optional[bool] = None
    signal: Optional[float] = None
    provenance: Optional[str] = None
    title: Optional[str] = None

    def period(self) -> str:
        if not (self.start or self.end):
            return ""
        return f"{self.start or '?'} - {self.end or 'Present'}"


@dataclass
class SourceResult:
    """Outcome of one adapter lookup for one person."""

    source: Source
    status: LookupStatus
    mentions: List[OrganizationMention] = field(default_factory=list)
    profile_url: Optional[str] = None
    identifier: Optional[str] = None
    reason: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.FOUND

    @classmethod
    def not_configured(cls, source: Source, reason: str) -> "SourceResult":
        return cls(source=source, status=LookupStatus.NOT_CONFIGURED, reason=reason)

    @classmethod
    def not_found(cls, source: Source, reason: str = "") -> "SourceResult":
        return cls(source=source, status=LookupStatus.NOT_FOUND, reason=reason)


@dataclass
class MatchResult:
    match: bool
    confidence: Optional[Confidence] = None
    reason: str = ""
    mention: Optional[OrganizationMention] = None
    matched_name: Optional[str] = None
    rule: Optional[str] = None

    @classmethod
    def no_match(cls, reason: str, mention: Optional[OrganizationMention] = None) -> "MatchResult":
        return cls(match=False, reason=reason, mention=mention)


@dataclass
class Candidate:
    id: str
    full_name: str
    npi_number: Optional[str] = None
    profile_urls: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Candidate":
        urls = {
            key: record[key]
            for key in ("linkedin_url", "doximity_url", "healthgrades_url")
            if record.get(key)
        }
        return cls(
            id=str(record["id"]),
            full_name=record["full_name"],
            npi_number=record.get("npi_number") or None,
            profile_urls=urls,
        )


@dataclass
class Submission:
    candidate_id: str
    client_name: str
    job_title: str = ""
    pipeline_stage: str = ""
    submitted_date: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Submission":
        return cls(
            candidate_id=str(record["candidate_id"]),
            client_name=record["client_name"],
            job_title=record.get("job_title") or "",
            pipeline_stage=record.get("pipeline_stage") or "",
            submitted_date=record.get("submitted_date"),
            id=str(record["id"]) if record.get("id") is not None else None,
        )


@dataclass
class Alert:
    candidate_id: str
    candidate_name: str
    client_name: str
    source: Source
    confidence: Confidence
    match_reason: str
    job_title: str = ""
    pipeline_stage: str = ""
    evidence: Dict[str, Any] = field(default_factory=dict)
    status: AlertStatus = AlertStatus.PENDING
    id: Optional[str] = None
    created_at: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        record = {
            "id": self.id,
            "candidate_id": self.candidate_id,
            "candidate_name": self.candidate_name,
            "client_name": self.client_name,
            "job_title": self.job_title,
            "pipeline_stage": self.pipeline_stage,
            "source": self.source.value,
            "confidence": self.confidence.value,
            "match_reason": self.match_reason,
            "status": self.status.value,
            "created_at": self.created_at or datetime.now().isoformat(),
        }
        record.update(self.evidence)
        return record
