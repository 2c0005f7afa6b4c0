"""
Structured logging setup for the recording discovery worker.
Provides JSON-formatted logs with consistent fields for scan monitoring.
"""

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structured logging for scan jobs.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines for log shipping; human-readable console lines otherwise
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            # Fields bound with bound_contextvars (job, root_id) go on every line
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )

    # Request-level chatter from the HTTP stack drowns out scan progress
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Convenience functions for common log patterns
def log_retry_attempt(context: str, attempt: int, max_retries: int, delay: float, error: str):
    """Log a retried remote call with consistent fields."""
    logger = get_logger("retry")

    logger.warning(
        "Remote call failed, retrying",
        context=context,
        attempt=attempt,
        max_retries=max_retries,
        delay_seconds=delay,
        error=error,
        event_type="remote_retry",
    )


def log_scan_summary(report, job: str | None = None):
    """Log a session summary report with consistent fields."""
    logger = get_logger("scan")

    log_data = {
        "total_sessions": report.total_sessions,
        "with_video": report.with_video,
        "with_audio": report.with_audio,
        "with_transcript": report.with_transcript,
        "with_chat": report.with_chat,
        "complete_recordings": report.complete_recordings,
        "high_confidence": report.high_confidence,
        "medium_confidence": report.medium_confidence,
        "low_confidence": report.low_confidence,
        "average_files_per_session": round(report.average_files_per_session, 1),
        "event_type": "scan_summary",
    }

    if job:
        log_data["job"] = job

    if report.total_sessions == 0:
        logger.warning("Scan produced no sessions", **log_data)
    else:
        logger.info("Scan summary", **log_data)
