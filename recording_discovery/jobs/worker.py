"""
Scan worker entrypoint.

Usage:
    recording-discovery-worker <job> [root_folder_id]

The job name falls back to the WORKER_JOB environment variable and the root
folder to DRIVE_ROOT_FOLDER_ID.
"""

import asyncio
import os
import sys
import time
from collections.abc import Awaitable, Callable

from recording_discovery.config import settings
from recording_discovery.infrastructure.observability.logging import get_logger, setup_logging
from recording_discovery.jobs.drive_scan_job import (
    run_coach_folders_job,
    run_domain_drive_scan_job,
    run_drive_scan_job,
)

logger = get_logger(__name__)

ScanJob = Callable[[str | None], Awaitable[None]]

JOB_REGISTRY: dict[str, ScanJob] = {
    "drive_scan": run_drive_scan_job,
    "domain_drive_scan": run_domain_drive_scan_job,
    "coach_folders": run_coach_folders_job,
}

DEFAULT_JOB = "drive_scan"


def _resolve_job_name(argv: list[str] | None = None) -> str:
    """Pick the target job from CLI args or WORKER_JOB env variable."""
    args = sys.argv[1:] if argv is None else argv
    if args:
        return args[0].strip().lower()
    return os.getenv("WORKER_JOB", DEFAULT_JOB).strip().lower()


def _resolve_root_id(argv: list[str] | None = None) -> str | None:
    args = sys.argv[1:] if argv is None else argv
    return args[1].strip() if len(args) > 1 else None


async def run_worker(job_name: str | None = None, root_id: str | None = None) -> None:
    """Run one scan job to completion."""
    name = (job_name or _resolve_job_name()).strip().lower()
    if name not in JOB_REGISTRY:
        raise ValueError(
            f"Unknown worker job '{name}'. "
            f"Available jobs: {', '.join(sorted(JOB_REGISTRY.keys()))}"
        )

    logger.info("Starting scan worker", job=name, root_id=root_id)
    started = time.monotonic()
    await JOB_REGISTRY[name](root_id)
    logger.info(
        "Scan worker finished",
        job=name,
        duration_seconds=round(time.monotonic() - started, 2),
    )


def main() -> None:
    """CLI entrypoint."""
    setup_logging(settings.LOG_LEVEL, json_output=not settings.debug)
    asyncio.run(run_worker(_resolve_job_name(), _resolve_root_id()))


if __name__ == "__main__":
    main()
