"""
Drive scan jobs.

One run walks the configured root folder, groups the discovered files into
sessions, validates them and logs a summary. The domain variant also runs the
institution's naming-convention extension and tags sessions with their
program cycle.
"""

from dataclasses import dataclass

import structlog

from recording_discovery.config import settings
from recording_discovery.features.session_discovery.domain_patterns.extension import (
    DomainPatternExtension,
    DomainReport,
    summarize_domain,
)
from recording_discovery.features.session_discovery.matching.service import (
    SessionMatchingEngine,
    summarize,
)
from recording_discovery.features.session_discovery.program_cycle.detector import (
    ProgramCycleDetector,
)
from recording_discovery.features.session_discovery.scanning.scanner import (
    HierarchicalScanner,
    ScanOptions,
    ScanOutcome,
)
from recording_discovery.infrastructure.observability.logging import get_logger, log_scan_summary
from recording_discovery.models.domain.drive_domain import RemoteFile
from recording_discovery.models.domain.session_domain import SessionReport, ValidationResult
from recording_discovery.services.drive.google_client import GoogleDriveService
from recording_discovery.services.drive.remote_store import RemoteStore
from recording_discovery.services.drive.retrying_accessor import RetryingRemoteAccessor, RetryPolicy

logger = get_logger(__name__)


@dataclass(slots=True)
class DriveScanResult:
    outcome: ScanOutcome
    validation: ValidationResult
    report: SessionReport
    domain_report: DomainReport | None = None


def _resolve_root(root_id: str | None) -> str:
    root = root_id or settings.DRIVE_ROOT_FOLDER_ID
    if not root:
        raise ValueError("DRIVE_ROOT_FOLDER_ID is not configured")
    return root


def _create_drive_service() -> GoogleDriveService:
    if not settings.GOOGLE_DRIVE_ACCESS_TOKEN:
        raise ValueError("GOOGLE_DRIVE_ACCESS_TOKEN is not configured")
    return GoogleDriveService(settings.GOOGLE_DRIVE_ACCESS_TOKEN)


async def run_drive_scan(
    root_id: str | None = None,
    *,
    store: RemoteStore | None = None,
    domain: bool = False,
    options: ScanOptions | None = None,
) -> DriveScanResult:
    """
    Scan, match, validate and summarize one folder tree.

    Args:
        root_id: Root folder id; defaults to DRIVE_ROOT_FOLDER_ID
        store: Remote store to scan; defaults to the Drive API client
        domain: Run with the domain pattern extension and program cycles
        options: Scan options; defaults to the configured ones

    Raises:
        ValueError: If the root folder or access token is not configured
    """
    root = _resolve_root(root_id)
    job = "domain_drive_scan" if domain else "drive_scan"
    owned_service = None
    if store is None:
        owned_service = store = _create_drive_service()

    try:
        with structlog.contextvars.bound_contextvars(job=job, root_id=root):
            accessor = RetryingRemoteAccessor(store, RetryPolicy.from_settings())
            extension = DomainPatternExtension.from_settings() if domain else None
            scanner = HierarchicalScanner(accessor, extension)

            outcome = await scanner.scan_tree(root, options)

            engine = SessionMatchingEngine()
            sessions = engine.match(outcome.files)
            validation = engine.validate(sessions)
            report = summarize(validation.valid)
            log_scan_summary(report, job=job)

            domain_report = None
            if domain:
                detector = ProgramCycleDetector()
                for session in validation.valid:
                    detector.annotate_session(session)
                domain_report = summarize_domain(validation.valid)
                logger.info(
                    "Domain summary",
                    groups_with_student_id=domain_report.groups_with_student_id,
                    groups_with_coach=domain_report.groups_with_coach,
                    by_session_type=domain_report.by_session_type,
                    by_program=domain_report.by_program,
                )

            if outcome.failures:
                logger.warning(
                    "Scan finished with unreadable folders",
                    failed_folders=[f.folder_id for f in outcome.failures],
                )

            return DriveScanResult(
                outcome=outcome,
                validation=validation,
                report=report,
                domain_report=domain_report,
            )
    finally:
        if owned_service is not None:
            await owned_service.close()


async def list_coach_folders(
    root_id: str | None = None, *, store: RemoteStore | None = None
) -> list[RemoteFile]:
    """Coach folders directly under the root."""
    root = _resolve_root(root_id)
    owned_service = None
    if store is None:
        owned_service = store = _create_drive_service()

    try:
        accessor = RetryingRemoteAccessor(store, RetryPolicy.from_settings())
        folders = await DomainPatternExtension.from_settings().discover_coach_folders(
            root, accessor
        )
        for folder in folders:
            logger.info("Coach folder", folder_id=folder.id, folder_name=folder.name)
        return folders
    finally:
        if owned_service is not None:
            await owned_service.close()


async def run_drive_scan_job(root_id: str | None = None) -> None:
    await run_drive_scan(root_id)


async def run_domain_drive_scan_job(root_id: str | None = None) -> None:
    await run_drive_scan(root_id, domain=True)


async def run_coach_folders_job(root_id: str | None = None) -> None:
    await list_coach_folders(root_id)
