"""
Monitoring run: every candidate x client submission, every evidence source.

Per pair the steps run in a fixed order:

    PENDING -> PIPELINE_CHECKED -> ENRICHED -> REGISTRY_CHECKED -> SEARCH_CHECKED -> DONE

The professional-network lookup (the most expensive source) runs last and is
skipped when the pair already has an alert from this run or an active alert
from another source. Evidence is fetched once per candidate and source per
run; client enrichment runs once per client name per run. Pairs are processed
one at a time, and a second concurrent run returns immediately.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from .config import Settings
from .enrichment import CompanyResearcher, EnrichmentReport
from .location import extract_location
from .logger import get_logger
from .models import (
    Alert,
    Candidate,
    Confidence,
    EvidenceKind,
    Location,
    MatchResult,
    Source,
    SourceResult,
    Submission,
)
from .normalize import has_identity, normalize_organization_name
from .relatedness import MANUAL, RelatednessIndex
from .retry import is_transient_error
from .scoring import best_match
from .storage import RecordStore
from .vocab import PIPELINE_STAGE_SIGNALS

logger = get_logger()

SEARCH_SOURCES = (Source.DOXIMITY, Source.HEALTHGRADES, Source.WEB)


class PairStage(str, Enum):
    PENDING = "pending"
    PIPELINE_CHECKED = "pipeline_checked"
    ENRICHED = "enriched"
    REGISTRY_CHECKED = "registry_checked"
    SEARCH_CHECKED = "search_checked"
    DONE = "done"


@dataclass
class RunState:
    """Everything one run memoizes. Built fresh at the start of each run."""

    enrichment_cache: Dict[str, Optional[EnrichmentReport]] = field(default_factory=dict)
    evidence_cache: Dict[Tuple[str, Source], SourceResult] = field(default_factory=dict)
    alerted_pairs: Set[Tuple[str, str]] = field(default_factory=set)
    pair_stages: Dict[Tuple[str, str], PairStage] = field(default_factory=dict)
    checked: int = 0
    pairs: int = 0
    alerts_created: int = 0
    per_source_counts: Dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in Source})

    def summary(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "pairs": self.pairs,
            "alerts_created": self.alerts_created,
            "per_source_counts": dict(self.per_source_counts),
        }


def pipeline_signal(stage: str) -> Optional[Tuple[Confidence, str]]:
    """(confidence, label) for stages that mean a placement happened or is close."""
    lowered = (stage or "").lower()
    for keywords, confidence, label in PIPELINE_STAGE_SIGNALS:
        if any(k in lowered for k in keywords):
            return Confidence(confidence), label
    return None


class MonitoringCoordinator:
    def __init__(
        self,
        store: RecordStore,
        index: RelatednessIndex,
        adapters: List[Any],
        researcher: Optional[CompanyResearcher] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Args:
            store: Record store holding candidates, submissions and alerts
            index: Relatedness index shared with the researcher
            adapters: Evidence adapters, each with `source` and `find(name, context)`
            researcher: Optional client enrichment and relationship confirmation
            settings: Run limits; defaults apply when omitted
        """
        self.store = store
        self.index = index
        self.adapters = {adapter.source: adapter for adapter in adapters}
        self.researcher = researcher
        self.settings = settings or Settings()
        self.state = RunState()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_monitoring(self) -> Dict[str, Any]:
        """Check every submission once. Safe to call repeatedly; overlapping calls no-op."""
        if not self._lock.acquire(blocking=False):
            logger.warning("Monitoring run requested while one is in progress")
            return {"status": "already running", **RunState().summary()}

        try:
            self.state = RunState()
            self.store.reload()
            candidates = self.store.list_candidates()
            logger.info("Monitoring run started", candidates=len(candidates), sources=[s.value for s in self.adapters])

            for candidate in candidates:
                submissions = self.store.list_submissions_for(candidate.id)
                self.state.checked += 1
                for submission in submissions:
                    self.state.pairs += 1
                    try:
                        self.process_pair(candidate, submission)
                    except Exception as e:
                        logger.error(
                            "Pair check failed",
                            candidate=candidate.full_name,
                            client=submission.client_name,
                            error=str(e),
                            error_type=type(e).__name__,
                        )

            summary = {"status": "completed", **self.state.summary()}
            logger.info("Monitoring run finished", **summary)
            return summary
        finally:
            logger.log_metrics_summary()
            self._lock.release()

    # Per-pair state machine

    def _advance(self, key: Tuple[str, str], stage: PairStage):
        self.state.pair_stages[key] = stage

    def process_pair(self, candidate: Candidate, submission: Submission):
        key = (candidate.id, submission.client_name)
        self._advance(key, PairStage.PENDING)

        self.check_pipeline(candidate, submission)
        self._advance(key, PairStage.PIPELINE_CHECKED)

        self.enrich_client(submission.client_name)
        self._advance(key, PairStage.ENRICHED)

        client_location = extract_location(submission.job_title) or None

        self.check_source(Source.REGISTRY, candidate, submission, client_location)
        self._advance(key, PairStage.REGISTRY_CHECKED)

        for source in SEARCH_SOURCES:
            self.check_source(source, candidate, submission, client_location)
        if self.should_skip_network(candidate, submission):
            logger.debug("Skipping network lookup, pair already alerted", candidate=candidate.full_name, client=submission.client_name)
        else:
            self.check_source(Source.NETWORK, candidate, submission, client_location)
        self._advance(key, PairStage.SEARCH_CHECKED)

        self._advance(key, PairStage.DONE)

    def check_pipeline(self, candidate: Candidate, submission: Submission) -> bool:
        signal = pipeline_signal(submission.pipeline_stage)
        if signal is None or self.store.find_alert(candidate.id, submission.client_name, Source.PIPELINE.value):
            return False
        confidence, label = signal
        if label == "HIRED":
            reason = f"{candidate.full_name} was HIRED at {submission.client_name}"
        else:
            reason = f"{candidate.full_name} is in {label} with {submission.client_name}"
        if submission.job_title:
            reason = f"{reason} - {submission.job_title}"
        return self.create_alert(Alert(
            candidate_id=candidate.id,
            candidate_name=candidate.full_name,
            client_name=submission.client_name,
            source=Source.PIPELINE,
            confidence=confidence,
            match_reason=reason,
            job_title=submission.job_title,
            pipeline_stage=submission.pipeline_stage,
        ))

    def enrich_client(self, client_name: str) -> Optional[EnrichmentReport]:
        key = normalize_organization_name(client_name)
        if key in self.state.enrichment_cache:
            return self.state.enrichment_cache[key]
        report = None
        if self.researcher is not None:
            try:
                report = self.researcher.enrich(client_name)
            except Exception as e:
                logger.error("Client enrichment failed", client=client_name, error=str(e))
        self.state.enrichment_cache[key] = report
        return report

    def should_skip_network(self, candidate: Candidate, submission: Submission) -> bool:
        if (candidate.id, submission.client_name) in self.state.alerted_pairs:
            return True
        return self.store.has_active_alert_for_pair(candidate.id, submission.client_name, exclude_source=Source.NETWORK.value)

    # Evidence

    def evidence(self, source: Source, candidate: Candidate) -> Optional[SourceResult]:
        """Memoized adapter lookup for one candidate; None when the source is not wired."""
        adapter = self.adapters.get(source)
        if adapter is None:
            return None
        key = (candidate.id, source)
        if key not in self.state.evidence_cache:
            context = {"npi_number": candidate.npi_number, "profile_urls": candidate.profile_urls}
            try:
                result = adapter.find(candidate.full_name, context)
            except Exception as e:
                logger.record_lookup_failure(source.value, type(e).__name__)
                log = logger.warning if is_transient_error(e) else logger.error
                log("Evidence lookup failed", source=source.value, candidate=candidate.full_name, error=str(e))
                result = SourceResult.not_found(source, f"lookup error: {e}")
            self.state.evidence_cache[key] = result
            if source == Source.REGISTRY:
                self.write_back_identifier(candidate, result)
        return self.state.evidence_cache[key]

    def write_back_identifier(self, candidate: Candidate, result: SourceResult):
        if candidate.npi_number or not result.found or not result.identifier:
            return
        if not result.details.get("exact_unique"):
            return
        try:
            self.store.update_candidate(candidate.id, {"npi_number": result.identifier})
        except KeyError:
            return
        candidate.npi_number = result.identifier
        logger.info("Registry number discovered", candidate=candidate.full_name, npi=result.identifier)

    def _confirm_through_search(
        self,
        result: SourceResult,
        client_name: str,
        client_location: Optional[Location],
    ) -> MatchResult:
        """Try co-occurrence confirmation on the first few practice names, then re-score."""
        if self.researcher is None or not self.researcher.can_search:
            return MatchResult.no_match("no relationship confirmation available")
        tried = 0
        for mention in result.mentions:
            if tried >= self.settings.max_relationship_checks:
                break
            if mention.kind != EvidenceKind.STRUCTURED or not has_identity(mention.organization):
                continue
            tried += 1
            related = self.researcher.confirm_relationship(mention.organization, client_name)
            if related.match:
                match = best_match([mention], client_name, self.index, client_location)
                if match.match:
                    match.reason = f"{match.reason}; {related.reason}"
                    if related.via:
                        match.reason = f"{match.reason} ({related.via})"
                    return match
        return MatchResult.no_match("no relationship confirmed")

    def check_source(
        self,
        source: Source,
        candidate: Candidate,
        submission: Submission,
        client_location: Optional[Location],
    ) -> bool:
        client_name = submission.client_name
        if self.store.find_alert(candidate.id, client_name, source.value):
            return False
        result = self.evidence(source, candidate)
        if result is None or not result.found:
            return False

        match = best_match(result.mentions, client_name, self.index, client_location)
        if not match.match and source == Source.REGISTRY:
            match = self._confirm_through_search(result, client_name, client_location)
        if not match.match:
            logger.debug("No match", source=source.value, candidate=candidate.full_name, client=client_name, reason=match.reason)
            return False

        reason = f"{source.value}: {match.reason}"
        if result.details.get("ambiguous"):
            reason = f"{reason}; {result.details['name_matches']} registry records matched the name"

        mention = match.mention
        evidence = {
            "matched_organization": match.matched_name if mention and mention.kind == EvidenceKind.STRUCTURED else None,
            "matched_location": str(mention.location) if mention and mention.location else None,
            "source_url": mention.url if mention else None,
            "profile_url": result.profile_url,
            "provenance": mention.provenance if mention else None,
            "match_rule": match.rule,
        }
        if result.identifier:
            evidence["npi_number"] = result.identifier
        return self.create_alert(Alert(
            candidate_id=candidate.id,
            candidate_name=candidate.full_name,
            client_name=client_name,
            source=source,
            confidence=match.confidence,
            match_reason=reason,
            job_title=submission.job_title,
            pipeline_stage=submission.pipeline_stage,
            evidence=evidence,
        ))

    def create_alert(self, alert: Alert) -> bool:
        if not self.store.append_alert(alert):
            return False
        self.state.alerts_created += 1
        self.state.per_source_counts[alert.source.value] += 1
        self.state.alerted_pairs.add((alert.candidate_id, alert.client_name))
        logger.record_alert_created(alert.source.value)
        logger.info(
            "Alert created",
            source=alert.source.value,
            candidate=alert.candidate_name,
            client=alert.client_name,
            confidence=alert.confidence.value,
        )
        return True

    # Relationship surface

    def add_relationship(self, parent: str, alias: str) -> bool:
        return self.index.add_edge(parent, alias, MANUAL)

    def get_all_relationships(self) -> Dict[str, Dict[str, List[str]]]:
        return self.index.all_edges()
