"""
Tests for logger functionality.
"""

import pytest

from placementwatch.logger import StructuredLogger, get_logger, reset_logger


@pytest.fixture
def quiet_logger(tmp_path):
    return StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, quiet_logger):
        """Logger should be created with zeroed metrics."""
        assert quiet_logger.logger.name == "test"
        assert quiet_logger.metrics["api_calls"] == 0
        assert quiet_logger.metrics["quota_exhausted"] == []

    def test_log_with_context(self, tmp_path, quiet_logger):
        """Context kwargs are written as JSON after the message."""
        quiet_logger.info("Alert created", source="NPI", candidate="Jane Smith")

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Alert created" in content
        assert '"source": "NPI"' in content

    def test_api_calls_by_service(self, quiet_logger):
        """API calls are counted overall and per service."""
        quiet_logger.record_api_call("serper")
        quiet_logger.record_api_call("serper")
        quiet_logger.record_api_call("nppes")

        metrics = quiet_logger.get_metrics()
        assert metrics["api_calls"] == 3
        assert metrics["api_calls_by_service"] == {"serper": 2, "nppes": 1}

    def test_lookup_metrics(self, quiet_logger):
        """Lookup attempts, successes and failures are tracked per source."""
        quiet_logger.record_lookup_attempt("NPI")
        quiet_logger.record_lookup_success("NPI")
        quiet_logger.record_lookup_attempt("LinkedIn")
        quiet_logger.record_lookup_failure("LinkedIn", "Timeout")

        metrics = quiet_logger.get_metrics()
        assert metrics["lookups_attempted"] == 2
        assert metrics["lookups_successful"] == 1
        assert metrics["lookups_failed"] == 1
        assert metrics["errors_by_type"]["LinkedIn:Timeout"] == 1
        assert metrics["source_success_rate"]["NPI"]["success_rate"] == 1.0

    def test_success_rate_calculation(self, quiet_logger):
        """Success rate should be calculated correctly."""
        for _ in range(3):
            quiet_logger.record_lookup_attempt("Google")
        quiet_logger.record_lookup_success("Google")
        quiet_logger.record_lookup_success("Google")

        rate = quiet_logger.get_metrics()["source_success_rate"]["Google"]["success_rate"]
        assert rate == pytest.approx(0.667, rel=0.01)

    def test_quota_recorded_once(self, quiet_logger):
        """A service is listed once however often it trips."""
        quiet_logger.record_quota_exhausted("serper")
        quiet_logger.record_quota_exhausted("serper")
        assert quiet_logger.metrics["quota_exhausted"] == ["serper"]

    def test_reset_keeps_quota_trips(self, quiet_logger):
        """Counters reset between runs but latched quota trips remain."""
        quiet_logger.record_api_call("serper")
        quiet_logger.record_alert_created("NPI")
        quiet_logger.record_quota_exhausted("serper")

        quiet_logger.reset_metrics()

        assert quiet_logger.metrics["api_calls"] == 0
        assert quiet_logger.metrics["alerts_created"] == {}
        assert quiet_logger.metrics["quota_exhausted"] == ["serper"]

    def test_metrics_summary(self, tmp_path, quiet_logger):
        """Summary lists calls, alerts and quota trips."""
        quiet_logger.record_api_call("serper")
        quiet_logger.record_alert_created("Doximity")
        quiet_logger.record_quota_exhausted("netrows")

        quiet_logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Monitoring Run Metrics" in content
        assert "Doximity: 1" in content
        assert "Quota exhausted: netrows" in content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_api_call()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)
        assert logger2.metrics["api_calls"] == 0
