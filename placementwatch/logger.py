"""
Structured logging for placement monitoring.

Console and daily file output plus counters for upstream calls, evidence
lookups and quota trips, so a run's health can be read from one summary.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks per-source lookup metrics for monitoring runs.
    """

    def __init__(
        self,
        name: str = "placementwatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "api_calls": 0,
            "api_calls_by_service": {},
            "lookups_attempted": 0,
            "lookups_successful": 0,
            "lookups_failed": 0,
            "errors_by_type": {},
            "source_success_rate": {},
            "quota_exhausted": [],
            "alerts_created": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path(os.getenv("PLACEMENTWATCH_LOG_DIR", "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_api_call(self, service: str = "unknown"):
        """Count one outbound request to an upstream service."""
        self.metrics["api_calls"] += 1
        by_service = self.metrics["api_calls_by_service"]
        by_service[service] = by_service.get(service, 0) + 1

    def record_lookup_attempt(self, source: str):
        """Record an evidence lookup against a source."""
        self.metrics["lookups_attempted"] += 1
        if source not in self.metrics["source_success_rate"]:
            self.metrics["source_success_rate"][source] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["source_success_rate"][source]["attempts"] += 1

    def record_lookup_success(self, source: str):
        self.metrics["lookups_successful"] += 1
        if source in self.metrics["source_success_rate"]:
            self.metrics["source_success_rate"][source]["successes"] += 1

    def record_lookup_failure(self, source: str, error_type: str):
        """Record a failed lookup or upstream call, keyed by error type."""
        self.metrics["lookups_failed"] += 1
        key = f"{source}:{error_type}"
        self.metrics["errors_by_type"][key] = self.metrics["errors_by_type"].get(key, 0) + 1

    def record_quota_exhausted(self, service: str):
        if service not in self.metrics["quota_exhausted"]:
            self.metrics["quota_exhausted"].append(service)

    def record_alert_created(self, source: str):
        alerts = self.metrics["alerts_created"]
        alerts[source] = alerts.get(source, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with per-source success rates filled in."""
        metrics_copy = self.metrics.copy()
        for source, stats in metrics_copy["source_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def reset_metrics(self):
        """Zero all counters. Quota trips are kept since breakers stay latched."""
        quota = list(self.metrics["quota_exhausted"])
        for key, value in self.metrics.items():
            if isinstance(value, dict):
                value.clear()
            elif isinstance(value, list):
                value.clear()
            else:
                self.metrics[key] = 0
        self.metrics["quota_exhausted"].extend(quota)

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["lookups_attempted"]
        total_successes = metrics["lookups_successful"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Monitoring Run Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']}")
        for service, count in metrics["api_calls_by_service"].items():
            self.info(f"  {service}: {count}")
        self.info(f"Lookups: {total_successes}/{total_attempts} ({overall_rate}% found)")

        if metrics["source_success_rate"]:
            self.info("Source Hit Rates:")
            for source, stats in metrics["source_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {source}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["alerts_created"]:
            self.info("Alerts Created:")
            for source, count in metrics["alerts_created"].items():
                self.info(f"  {source}: {count}")

        if metrics["quota_exhausted"]:
            self.warning(f"Quota exhausted: {', '.join(metrics['quota_exhausted'])}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "placementwatch",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level; defaults to PLACEMENTWATCH_LOG_LEVEL or INFO
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        level = level or os.getenv("PLACEMENTWATCH_LOG_LEVEL", "INFO")
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
