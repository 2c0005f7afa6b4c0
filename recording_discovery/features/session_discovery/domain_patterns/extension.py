"""
Domain pattern extension for the hierarchical scanner.

Plugs an institution-specific rule table and a naming-convention learning
pass into the generic scanner. The learning pass samples a shallow slice of
the tree before the full scan; what it learns biases participant/coach
detection and adds confidence for names that follow a learned convention.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, replace

from recording_discovery.config import settings
from recording_discovery.features.session_discovery.scanning.extraction import (
    calculate_confidence,
    clean_participant,
)
from recording_discovery.features.session_discovery.scanning.scanner import ScanOptions
from recording_discovery.infrastructure.observability.logging import get_logger
from recording_discovery.models.domain.drive_domain import RemoteFile
from recording_discovery.models.domain.session_domain import (
    AnnotatedFile,
    DomainAnnotation,
    FileRole,
    SessionGroup,
)
from recording_discovery.services.drive.remote_store import RemoteStoreError
from recording_discovery.services.drive.retrying_accessor import RetryingRemoteAccessor

from .rules import COACH_INDICATORS, DomainRuleSet, LearnedConventions, contains_name

logger = get_logger(__name__)

LEARNING_MAX_DEPTH = 2
LEARNING_SAMPLE_SIZE = 3
LEARNING_PAGE_SIZE = 50

_WITH_NAME_RE = re.compile(
    r"(?<![A-Za-z])(?i:with|and)[\s_]+([A-Z][a-z]+(?: [A-Z][a-z]+)*)"
    r"|&\s*([A-Z][a-z]+)"
)


@dataclass(slots=True, frozen=True)
class DomainReport:
    groups_with_student_id: int
    groups_with_coach: int
    by_session_type: dict[str, int]
    by_program: dict[str, int]


class DomainPatternExtension:
    """
    Strategy object for ``HierarchicalScanner`` that layers the
    institution's rule table and a learning pre-pass over the generic scan.
    """

    def __init__(
        self,
        rules: DomainRuleSet | None = None,
        known_coaches: Iterable[str] | None = None,
        extra_excludes: Iterable[str] | None = None,
        max_depth: int | None = None,
    ):
        self.rules = rules or DomainRuleSet.for_institution(settings.INSTITUTION_NAME)
        self.known_coaches = tuple(
            settings.KNOWN_COACHES if known_coaches is None else known_coaches
        )
        self.extra_excludes = tuple(
            settings.DOMAIN_EXCLUDE_FOLDERS if extra_excludes is None else extra_excludes
        )
        self.max_depth = settings.DOMAIN_SCAN_MAX_DEPTH if max_depth is None else max_depth
        self.learned = LearnedConventions()

    @classmethod
    def from_settings(cls, config=None) -> DomainPatternExtension:
        config = config or settings
        return cls(
            rules=DomainRuleSet.for_institution(config.INSTITUTION_NAME),
            known_coaches=config.KNOWN_COACHES,
            extra_excludes=config.DOMAIN_EXCLUDE_FOLDERS,
            max_depth=config.DOMAIN_SCAN_MAX_DEPTH,
        )

    # ------------------------------------------------------------------
    # Scanner hooks
    # ------------------------------------------------------------------

    def adjust_options(self, options: ScanOptions) -> ScanOptions:
        excludes = list(options.exclude_folders)
        excludes.extend(name for name in self.extra_excludes if name not in excludes)
        max_depth = self.max_depth if options.max_depth is None else options.max_depth
        return replace(options, max_depth=max_depth, exclude_folders=tuple(excludes))

    async def prepare(self, root_id: str, accessor: RetryingRemoteAccessor) -> None:
        await self.learn(root_id, accessor)

    def admits(self, file: RemoteFile, role: FileRole) -> bool:
        """Media files that only the institution's vocabulary recognises."""
        if role not in (FileRole.VIDEO, FileRole.AUDIO):
            return False
        return self.rules.matches_any_rule(file.name)

    def enrich(self, annotated: AnnotatedFile) -> AnnotatedFile:
        file_name = annotated.name
        folder_name = annotated.parent_folder_name or ""
        rules = self.rules

        domain = DomainAnnotation(
            student_id=rules.extract_student_id(file_name) or rules.extract_student_id(folder_name),
            session_type=rules.extract_session_type(file_name)
            or rules.extract_session_type(folder_name),
            program=rules.extract_program(file_name) or rules.extract_program(folder_name),
            cohort=rules.extract_cohort(file_name) or rules.extract_cohort(folder_name),
            coach=self.extract_coach(f"{file_name} {folder_name}", annotated.participants or ()),
        )

        participants = self.enhance_participants(
            annotated.participants or (), file_name, folder_name, domain.coach
        )
        confidence = self.calculate_confidence(
            annotated, domain, has_participants=bool(participants)
        )

        return replace(
            annotated,
            domain=domain,
            participants=tuple(participants) if participants else None,
            confidence=confidence,
        )

    # ------------------------------------------------------------------
    # Learning pre-pass
    # ------------------------------------------------------------------

    async def learn(self, root_id: str, accessor: RetryingRemoteAccessor) -> LearnedConventions:
        """Sample the top of the tree to learn the naming conventions in use."""
        self.learned.reset()
        logger.info("Analyzing folder structure", root_id=root_id)

        await self._analyze_folder(root_id, 0, accessor)

        logger.info(
            "Learned naming patterns",
            folder_levels=len(self.learned.folder_structures),
            naming_conventions=sorted(self.learned.naming_conventions),
            participant_names=len(self.learned.participant_names),
        )
        return self.learned

    async def _analyze_folder(
        self, folder_id: str, depth: int, accessor: RetryingRemoteAccessor
    ) -> None:
        if depth > LEARNING_MAX_DEPTH:
            return

        try:
            folder = await accessor.get_folder_info(folder_id)
            self.learned.learn_from_name(folder.name, self.rules)
            self.learned.record_folder(depth, folder.name)

            page = await accessor.list_children(
                folder_id, folders_only=True, page_size=LEARNING_PAGE_SIZE
            )
        except RemoteStoreError as e:
            logger.warning(
                "Error analyzing folder structure",
                folder_id=folder_id,
                depth=depth,
                error=str(e),
            )
            return

        subfolders = [f for f in page.files if f.is_folder]
        self._log_naming_pattern([f.name for f in subfolders], depth)

        for subfolder in subfolders[:LEARNING_SAMPLE_SIZE]:
            accessor.remember_folder(subfolder)
            await self._analyze_folder(subfolder.id, depth + 1, accessor)

    def _log_naming_pattern(self, names: list[str], depth: int) -> None:
        if len(names) < 2:
            return

        def ratio(pattern: str) -> float:
            hits = sum(1 for n in names if re.search(pattern, n, re.IGNORECASE))
            return round(hits / len(names), 2)

        logger.debug(
            "Folder pattern analysis",
            depth=depth,
            week=ratio(r"week\s*\d+"),
            session=ratio(r"session\s*\d+"),
            date=ratio(r"\d{4}[-_]\d{2}[-_]\d{2}"),
            student_id=ratio(r"S\d+"),
        )

    # ------------------------------------------------------------------
    # Coach and participant detection
    # ------------------------------------------------------------------

    def is_likely_coach_name(self, name: str, context: str) -> bool:
        escaped = re.escape(name)
        for indicator in COACH_INDICATORS:
            pattern = (
                rf"(?<![A-Za-z]){indicator}[\s_-]*{escaped}(?![a-z])"
                rf"|(?<![A-Za-z]){escaped}[\s_-]*{indicator}(?![A-Za-z])"
            )
            if re.search(pattern, context, re.IGNORECASE):
                return True
        return False

    def extract_coach(self, text: str, candidates: Iterable[str] = ()) -> str | None:
        for coach in self.known_coaches:
            if contains_name(text, coach):
                return coach

        for name in [*sorted(self.learned.participant_names), *candidates]:
            if contains_name(text, name) and self.is_likely_coach_name(name, text):
                return name
        return None

    def enhance_participants(
        self,
        base: Iterable[str],
        file_name: str,
        folder_name: str,
        coach: str | None,
    ) -> list[str]:
        participants = list(dict.fromkeys(base))

        def add(name: str | None) -> None:
            if name and name not in participants:
                participants.append(name)

        for learned in sorted(self.learned.participant_names):
            if contains_name(file_name, learned) or contains_name(folder_name, learned):
                add(learned)

        add(coach)

        for match in _WITH_NAME_RE.finditer(f"{file_name} {folder_name}"):
            captured = match.group(1) or match.group(2)
            add(clean_participant(captured) if captured else None)

        return participants

    def calculate_confidence(
        self, annotated: AnnotatedFile, domain: DomainAnnotation, *, has_participants: bool
    ) -> int:
        score = calculate_confidence(
            annotated.name,
            annotated.parent_folder_name,
            has_date=annotated.date is not None,
            has_participants=has_participants,
            has_week=annotated.week is not None,
        )

        if domain.student_id:
            score += 15
        if domain.session_type:
            score += 10
        if domain.program:
            score += 5
        if domain.cohort:
            score += 5
        if domain.coach:
            score += 10
        if self.learned.matches_convention(annotated.name, self.rules):
            score += 10

        return min(score, 100)

    # ------------------------------------------------------------------
    # Coach folders
    # ------------------------------------------------------------------

    def is_coach_folder(self, folder: RemoteFile) -> bool:
        lower_name = folder.name.lower()
        if any(word in lower_name for word in ("coach", "mentor", "instructor")):
            return True
        return any(contains_name(folder.name, coach) for coach in self.known_coaches)

    async def discover_coach_folders(
        self, root_id: str, accessor: RetryingRemoteAccessor
    ) -> list[RemoteFile]:
        """Subfolders of the root that belong to a coach."""
        folders: list[RemoteFile] = []
        page_token = None
        while True:
            page = await accessor.list_children(root_id, page_token, folders_only=True)
            folders.extend(f for f in page.files if f.is_folder)
            page_token = page.next_page_token
            if not page_token:
                break

        coach_folders = [f for f in folders if self.is_coach_folder(f)]
        logger.info(
            "Discovered coach folders",
            root_id=root_id,
            coach_folders=len(coach_folders),
            total_folders=len(folders),
        )
        return coach_folders


def summarize_domain(groups: list[SessionGroup]) -> DomainReport:
    """Institution-specific counts over session groups; no side effects."""
    session_types: Counter[str] = Counter()
    programs: Counter[str] = Counter()

    for group in groups:
        for file in group.files:
            if file.domain is None:
                continue
            if file.domain.session_type:
                session_types[file.domain.session_type] += 1
            if file.domain.program:
                programs[file.domain.program] += 1

    def has_field(group: SessionGroup, attr: str) -> bool:
        return any(f.domain is not None and getattr(f.domain, attr) for f in group.files)

    return DomainReport(
        groups_with_student_id=sum(1 for g in groups if has_field(g, "student_id")),
        groups_with_coach=sum(1 for g in groups if has_field(g, "coach")),
        by_session_type=dict(session_types.most_common(5)),
        by_program=dict(programs.most_common()),
    )
