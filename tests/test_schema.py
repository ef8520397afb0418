"""
Tests for record validation and alert review transitions.
"""

from placementwatch.schema import can_transition, is_valid_npi, validate_candidate, validate_submission


class TestCandidateValidation:
    """Test candidate record validation."""

    def test_valid_candidate(self):
        """Minimal candidate passes."""
        assert validate_candidate({"id": "c1", "full_name": "Jane Smith"}) == []

    def test_integer_id_allowed(self):
        """CRM ids may be integers."""
        assert validate_candidate({"id": 42, "full_name": "Jane Smith"}) == []

    def test_missing_fields(self):
        """Both required fields are reported."""
        errors = validate_candidate({})
        assert "Missing required field: id" in errors
        assert "Missing required field: full_name" in errors

    def test_blank_name_rejected(self):
        """Whitespace-only names are invalid."""
        errors = validate_candidate({"id": "c1", "full_name": "   "})
        assert any("full_name" in e for e in errors)

    def test_bad_npi_rejected(self):
        """NPI numbers must be ten digits."""
        errors = validate_candidate({"id": "c1", "full_name": "Jane Smith", "npi_number": "12345"})
        assert any("npi_number" in e for e in errors)

    def test_empty_npi_allowed(self):
        """An empty NPI is treated as unknown."""
        assert validate_candidate({"id": "c1", "full_name": "Jane Smith", "npi_number": ""}) == []

    def test_relative_profile_url_rejected(self):
        """Profile URLs must be absolute."""
        errors = validate_candidate({"id": "c1", "full_name": "Jane Smith", "linkedin_url": "/in/jane"})
        assert any("linkedin_url" in e for e in errors)


class TestSubmissionValidation:
    """Test submission record validation."""

    def test_valid_submission(self):
        """Minimal submission passes."""
        assert validate_submission({"candidate_id": "c1", "client_name": "Abba Eye Care"}) == []

    def test_missing_client(self):
        """client_name is required."""
        errors = validate_submission({"candidate_id": "c1"})
        assert "Missing required field: client_name" in errors

    def test_optional_fields_must_be_strings(self):
        """job_title and pipeline_stage must be strings when present."""
        errors = validate_submission({"candidate_id": "c1", "client_name": "Abba", "pipeline_stage": 3})
        assert any("pipeline_stage" in e for e in errors)


class TestNpi:
    """Test NPI format check."""

    def test_ten_digits(self):
        """Only ten-digit strings are valid."""
        assert is_valid_npi("1234567893")
        assert is_valid_npi(" 1234567893 ")
        assert not is_valid_npi("123456789")
        assert not is_valid_npi(1234567893)
        assert not is_valid_npi(None)


class TestAlertTransitions:
    """Test review status moves."""

    def test_pending_moves(self):
        """Pending can go anywhere."""
        assert can_transition("pending", "reviewing")
        assert can_transition("pending", "confirmed")
        assert can_transition("pending", "dismissed")

    def test_reopen(self):
        """Closed alerts can only be reopened."""
        assert can_transition("dismissed", "pending")
        assert can_transition("confirmed", "pending")
        assert not can_transition("dismissed", "confirmed")

    def test_unknown_status(self):
        """Unknown statuses never transition."""
        assert not can_transition("pending", "archived")
        assert not can_transition("archived", "pending")
