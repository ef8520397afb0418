import re
from typing import Any, Dict, List
from urllib.parse import urlparse

from .models import AlertStatus

CANDIDATE_REQUIRED_FIELDS = ["id", "full_name"]
CANDIDATE_URL_FIELDS = ["linkedin_url", "doximity_url", "healthgrades_url"]
SUBMISSION_REQUIRED_FIELDS = ["candidate_id", "client_name"]
SUBMISSION_OPTIONAL_STR_FIELDS = ["job_title", "pipeline_stage", "submitted_date"]

_NPI = re.compile(r"^\d{10}$")

# Human review moves; any status may be re-opened to pending.
ALERT_STATUS_TRANSITIONS = {
    AlertStatus.PENDING: {AlertStatus.REVIEWING, AlertStatus.CONFIRMED, AlertStatus.DISMISSED},
    AlertStatus.REVIEWING: {AlertStatus.CONFIRMED, AlertStatus.DISMISSED, AlertStatus.PENDING},
    AlertStatus.CONFIRMED: {AlertStatus.PENDING},
    AlertStatus.DISMISSED: {AlertStatus.PENDING},
}


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_identifier(v: Any) -> bool:
    return _is_non_empty_str(v) or (isinstance(v, int) and not isinstance(v, bool))


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def is_valid_npi(value: Any) -> bool:
    return isinstance(value, str) and bool(_NPI.match(value.strip()))


def validate_candidate(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    if "id" not in data:
        errors.append("Missing required field: id")
    elif not _is_identifier(data["id"]):
        errors.append("Field 'id' must be a non-empty string or integer")

    if "full_name" not in data:
        errors.append("Missing required field: full_name")
    elif not _is_non_empty_str(data["full_name"]):
        errors.append("Field 'full_name' must be a non-empty string")

    npi = data.get("npi_number")
    if npi not in (None, "") and not is_valid_npi(npi):
        errors.append("Field 'npi_number' must be a 10-digit string if provided")

    for f in CANDIDATE_URL_FIELDS:
        value = data.get(f)
        if isinstance(value, str) and value.strip() and not _valid_url(value):
            errors.append(f"Field '{f}' must be a valid absolute URL (scheme + host)")

    return errors


def validate_submission(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    if "candidate_id" not in data:
        errors.append("Missing required field: candidate_id")
    elif not _is_identifier(data["candidate_id"]):
        errors.append("Field 'candidate_id' must be a non-empty string or integer")

    if "client_name" not in data:
        errors.append("Missing required field: client_name")
    elif not _is_non_empty_str(data["client_name"]):
        errors.append("Field 'client_name' must be a non-empty string")

    for f in SUBMISSION_OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    return errors


def can_transition(current: str, new: str) -> bool:
    try:
        return AlertStatus(new) in ALERT_STATUS_TRANSITIONS[AlertStatus(current)]
    except ValueError:
        return False
