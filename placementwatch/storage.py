import json
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .logger import get_logger
from .models import Alert, AlertStatus, Candidate, Submission
from .schema import can_transition, validate_candidate, validate_submission

logger = get_logger()


def empty_store() -> Dict[str, Any]:
    return {"candidates": [], "submissions": [], "alerts": [], "syncHistory": []}


def load_store(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return empty_store()
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return empty_store()
            data = json.loads(content)
    except (json.JSONDecodeError, IOError) as e:
        logger.error("Could not read record store, starting empty", path=str(path), error=str(e))
        return empty_store()
    for key, value in empty_store().items():
        data.setdefault(key, value)
    return data


def save_store(path: Path, store: Dict[str, Any]) -> None:
    """Whole-document rewrite via a temp file, so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(store, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in keys:
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


class RecordStore:
    """Candidates, submissions and alerts in one JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.data = load_store(self.path)

    def reload(self) -> None:
        self.data = load_store(self.path)

    def save(self) -> bool:
        """Persist the document. Failures are logged and reported as False."""
        try:
            save_store(self.path, self.data)
            return True
        except OSError as e:
            logger.error("Could not save record store", path=str(self.path), error=str(e))
            return False

    # Candidates and submissions

    def list_candidates(self) -> List[Candidate]:
        candidates = []
        for record in self.data["candidates"]:
            errors = validate_candidate(record)
            if errors:
                logger.warning("Skipping invalid candidate record", id=record.get("id"), errors=errors)
                continue
            candidates.append(Candidate.from_record(record))
        return candidates

    def list_submissions_for(self, candidate_id: str) -> List[Submission]:
        submissions = []
        for record in self.data["submissions"]:
            if str(record.get("candidate_id")) != str(candidate_id):
                continue
            errors = validate_submission(record)
            if errors:
                logger.warning("Skipping invalid submission record", id=record.get("id"), errors=errors)
                continue
            submissions.append(Submission.from_record(record))
        return submissions

    def get_candidate(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        return next((c for c in self.data["candidates"] if str(c.get("id")) == str(candidate_id)), None)

    def update_candidate(self, candidate_id: str, fields: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """Merge fields into a candidate and save. Returns the changed fields."""
        record = self.get_candidate(candidate_id)
        if record is None:
            raise KeyError(f"Unknown candidate: {candidate_id}")
        before = dict(record)
        record.update(fields)
        changed = diff_dict(before, record)
        if changed:
            self.save()
        return changed

    # Alerts

    def find_alert(self, candidate_id: str, client_name: str, source: str) -> Optional[Dict[str, Any]]:
        for alert in self.data["alerts"]:
            if (
                str(alert.get("candidate_id")) == str(candidate_id)
                and alert.get("client_name") == client_name
                and alert.get("source") == source
            ):
                return alert
        return None

    def has_active_alert_for_pair(self, candidate_id: str, client_name: str, exclude_source: Optional[str] = None) -> bool:
        """Any non-dismissed alert for the pair, optionally ignoring one source."""
        for alert in self.data["alerts"]:
            if (
                str(alert.get("candidate_id")) == str(candidate_id)
                and alert.get("client_name") == client_name
                and alert.get("source") != exclude_source
                and alert.get("status") != AlertStatus.DISMISSED.value
            ):
                return True
        return False

    def append_alert(self, alert: Alert) -> bool:
        """
        Add an alert unless one already exists for (candidate, client, source).

        Returns True if the alert was added and saved; False for a duplicate
        or when the save failed (the in-memory record is rolled back).
        """
        if self.find_alert(alert.candidate_id, alert.client_name, alert.source.value):
            return False
        alert.id = alert.id or uuid.uuid4().hex
        alert.created_at = alert.created_at or datetime.now().isoformat()
        record = alert.to_record()
        self.data["alerts"].append(record)
        if not self.save():
            self.data["alerts"].remove(record)
            return False
        return True

    def update_alert_status(self, alert_id: str, status: str) -> Dict[str, Any]:
        alert = next((a for a in self.data["alerts"] if str(a.get("id")) == str(alert_id)), None)
        if alert is None:
            raise KeyError(f"Unknown alert: {alert_id}")
        current = alert.get("status", AlertStatus.PENDING.value)
        if not can_transition(current, status):
            raise ValueError(f"Cannot move alert from {current} to {status}")
        alert["status"] = status
        alert["reviewed_at"] = datetime.now().isoformat()
        self.save()
        return alert

    def alerts_by_source(self) -> Dict[str, List[Dict[str, Any]]]:
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for alert in self.data["alerts"]:
            grouped.setdefault(alert.get("source", "unknown"), []).append(alert)
        return grouped
