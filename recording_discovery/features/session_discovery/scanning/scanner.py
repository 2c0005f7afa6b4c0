"""
Hierarchical Drive scanner.

Walks a folder tree depth-first, strictly one remote call at a time, and
collects annotated files that look like parts of a coaching-session
recording.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Protocol

from recording_discovery.config import settings
from recording_discovery.infrastructure.observability.logging import get_logger
from recording_discovery.models.domain.drive_domain import RemoteFile
from recording_discovery.models.domain.session_domain import AnnotatedFile, FileRole
from recording_discovery.services.drive.remote_store import RemoteStoreError
from recording_discovery.services.drive.retrying_accessor import RetryingRemoteAccessor

from .extraction import annotate_file, detect_file_role

logger = get_logger(__name__)

# Names that indicate a recording (or part of one) when no include patterns are given
RECORDING_PATTERNS = [
    re.compile(r"zoom.*recording", re.IGNORECASE),
    re.compile(r"\d{4}-\d{2}-\d{2}"),
    re.compile(r"week\s*\d+", re.IGNORECASE),
    re.compile(r"session\s*\d+", re.IGNORECASE),
    re.compile(r"coaching|session", re.IGNORECASE),
    re.compile(r"call.*with", re.IGNORECASE),
    re.compile(r"meeting.*recording", re.IGNORECASE),
    re.compile(r"\.(mp4|m4a|txt|vtt|srt)$", re.IGNORECASE),
    re.compile(r"transcript", re.IGNORECASE),
    re.compile(r"chat", re.IGNORECASE),
    re.compile(r"audio.*only", re.IGNORECASE),
    re.compile(r"GMT\d{8}-\d{6}", re.IGNORECASE),
    re.compile(r"recording", re.IGNORECASE),
]

SYSTEM_FILE_PATTERNS = [
    re.compile(r"^\."),
    re.compile(r"\.tmp$", re.IGNORECASE),
    re.compile(r"\.log$", re.IGNORECASE),
    re.compile(r"desktop\.ini$", re.IGNORECASE),
    re.compile(r"\.ds_store$", re.IGNORECASE),
    re.compile(r"thumbs\.db$", re.IGNORECASE),
]

IncludePattern = str | re.Pattern


@dataclass(slots=True, frozen=True)
class ScanOptions:
    # None defers to the extension, then to SCAN_MAX_DEPTH
    max_depth: int | None = None
    min_file_size: int = 100 * 1024
    exclude_folders: tuple[str, ...] = ()
    include_patterns: tuple[IncludePattern, ...] = ()
    # Shared across calls to guarantee each folder id is processed at most once
    visited: set[str] | None = None
    page_size: int = 100
    page_delay: float = 0.1

    @classmethod
    def from_settings(cls, config=None, **overrides) -> ScanOptions:
        config = config or settings
        return cls(**{**config.get_scan_config(), **overrides})


@dataclass(slots=True, frozen=True)
class ScanFailure:
    """A folder whose subtree could not be scanned."""

    folder_id: str
    depth: int
    error: str
    status_code: int | None = None


@dataclass(slots=True)
class ScanOutcome:
    files: list[AnnotatedFile] = field(default_factory=list)
    failures: list[ScanFailure] = field(default_factory=list)


class ScanExtension(Protocol):
    """Optional richer rule set plugged into the generic scanner."""

    def adjust_options(self, options: ScanOptions) -> ScanOptions: ...

    async def prepare(self, root_id: str, accessor: RetryingRemoteAccessor) -> None: ...

    def admits(self, file: RemoteFile, role: FileRole) -> bool: ...

    def enrich(self, annotated: AnnotatedFile) -> AnnotatedFile: ...


def _pattern_matches(pattern: IncludePattern, name: str) -> bool:
    if isinstance(pattern, re.Pattern):
        return pattern.search(name) is not None
    return pattern.lower() in name.lower()


class HierarchicalScanner:
    """
    Depth-first scanner over a remote folder tree.

    Subfolders are scanned to completion one at a time, which keeps at most
    one remote call in flight. A failure inside one folder is recorded and
    the scan carries on with its siblings.
    """

    def __init__(
        self,
        accessor: RetryingRemoteAccessor,
        extension: ScanExtension | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._accessor = accessor
        self._extension = extension
        self._sleep = sleep

    async def scan(self, root_id: str, options: ScanOptions | None = None) -> list[AnnotatedFile]:
        outcome = await self.scan_tree(root_id, options)
        return outcome.files

    async def scan_tree(self, root_id: str, options: ScanOptions | None = None) -> ScanOutcome:
        options = options or ScanOptions.from_settings()
        if options.visited is None:
            options = replace(options, visited=set())

        if self._extension is not None:
            options = self._extension.adjust_options(options)
            await self._extension.prepare(root_id, self._accessor)
        if options.max_depth is None:
            options = replace(options, max_depth=settings.SCAN_MAX_DEPTH)

        outcome = ScanOutcome()
        await self._scan_folder(root_id, 0, options, outcome)

        logger.info(
            "Scan complete",
            root_id=root_id,
            files_found=len(outcome.files),
            folders_failed=len(outcome.failures),
        )
        return outcome

    async def _scan_folder(
        self, folder_id: str, depth: int, options: ScanOptions, outcome: ScanOutcome
    ) -> None:
        if depth > options.max_depth:
            logger.debug("Max depth reached, not descending", folder_id=folder_id, depth=depth)
            return

        visited = options.visited
        if folder_id in visited:
            logger.debug("Folder already processed, skipping", folder_id=folder_id)
            return
        visited.add(folder_id)

        found_before = len(outcome.files)
        try:
            folder = await self._accessor.get_folder_info(folder_id)
            logger.info("Scanning folder", folder_id=folder_id, folder_name=folder.name, depth=depth)

            page_token = None
            while True:
                page = await self._accessor.list_children(
                    folder_id, page_token, page_size=options.page_size
                )

                for item in page.files:
                    if item.is_folder:
                        await self._visit_subfolder(item, depth, options, outcome)
                    else:
                        self._collect_file(item, folder, options, outcome)

                page_token = page.next_page_token
                if not page_token:
                    break
                # Smooth the request rate between pages of the same folder
                await self._sleep(options.page_delay)

        except RemoteStoreError as e:
            logger.error(
                "Error scanning folder",
                folder_id=folder_id,
                depth=depth,
                status_code=e.status_code,
                error=str(e),
            )
            outcome.failures.append(
                ScanFailure(folder_id=folder_id, depth=depth, error=str(e), status_code=e.status_code)
            )
            return

        logger.debug(
            "Completed folder",
            folder_id=folder_id,
            files_found=len(outcome.files) - found_before,
        )

    async def _visit_subfolder(
        self, subfolder: RemoteFile, depth: int, options: ScanOptions, outcome: ScanOutcome
    ) -> None:
        if subfolder.name in options.exclude_folders or subfolder.id in options.exclude_folders:
            logger.debug("Excluded folder", folder_id=subfolder.id, folder_name=subfolder.name)
            return

        self._accessor.remember_folder(subfolder)
        await self._scan_folder(subfolder.id, depth + 1, options, outcome)

    def _collect_file(
        self, item: RemoteFile, folder: RemoteFile, options: ScanOptions, outcome: ScanOutcome
    ) -> None:
        role = detect_file_role(item.name)
        if not self.is_potential_recording(item, role, options):
            return

        annotated = annotate_file(item, folder.id, folder.name)
        if self._extension is not None:
            annotated = self._extension.enrich(annotated)

        outcome.files.append(annotated)
        logger.debug(
            "Found potential recording",
            file_name=item.name,
            role=annotated.role.value,
            confidence=annotated.confidence,
        )

    def is_potential_recording(self, file: RemoteFile, role: FileRole, options: ScanOptions) -> bool:
        """Admission test for a discovered file."""
        if file.size is not None and file.size < options.min_file_size:
            logger.debug(
                "Excluded by size filter",
                file_name=file.name,
                size=file.size,
                min_file_size=options.min_file_size,
            )
            return False

        if any(pattern.search(file.name) for pattern in SYSTEM_FILE_PATTERNS):
            return False

        if options.include_patterns:
            if any(_pattern_matches(p, file.name) for p in options.include_patterns):
                return True
        elif role is not FileRole.UNKNOWN or any(p.search(file.name) for p in RECORDING_PATTERNS):
            return True

        return self._extension is not None and self._extension.admits(file, role)
