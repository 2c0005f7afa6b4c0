"""
Session matching - clusters annotated files into recording sessions.

Greedy single pass: each unassigned file becomes a pivot and absorbs every
later unassigned file that scores at or above the threshold against it. The
first pivot wins ties, so results depend on discovery order.
"""

from __future__ import annotations

import re
import uuid
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from recording_discovery.config import settings
from recording_discovery.infrastructure.observability.logging import get_logger
from recording_discovery.models.domain.session_domain import (
    AnnotatedFile,
    FileRole,
    RejectedSession,
    SessionGroup,
    SessionReport,
    SimilarityVerdict,
    ValidationResult,
)

logger = get_logger(__name__)

BASE_NAME_SIMILARITY = 0.8
HIGH_CONFIDENCE = 70
MEDIUM_CONFIDENCE = 40

_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]{2,4}$")
_ROLE_SUFFIX_RE = re.compile(r"[-_ ](?:video|audio|transcript|chat|caption)s?", re.IGNORECASE)
_COPY_SUFFIX_RE = re.compile(r"\s*\(\d+\)$")


def normalize_base_name(file_name: str) -> str:
    """File name without extension, role suffix or "(1)" copy marker."""
    base = _EXTENSION_RE.sub("", file_name)
    base = _ROLE_SUFFIX_RE.sub("", base)
    base = _COPY_SUFFIX_RE.sub("", base)
    return base.strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """1 - edit distance normalized by the longer string."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


@dataclass(slots=True, frozen=True)
class AssociationRule:
    name: str
    weight: float
    matcher: Callable[[AnnotatedFile, AnnotatedFile], bool]


def _same_base_name(a: AnnotatedFile, b: AnnotatedFile) -> bool:
    similarity = string_similarity(normalize_base_name(a.name), normalize_base_name(b.name))
    return similarity >= BASE_NAME_SIMILARITY


def _same_date(a: AnnotatedFile, b: AnnotatedFile) -> bool:
    if a.date is None or b.date is None:
        return False
    return a.date.raw == b.date.raw


def _shared_participants(a: AnnotatedFile, b: AnnotatedFile) -> bool:
    if not a.participants or not b.participants:
        return False
    return bool(set(a.participants) & set(b.participants))


def _same_folder(a: AnnotatedFile, b: AnnotatedFile) -> bool:
    return a.parent_folder_id == b.parent_folder_id


DEFAULT_RULES: tuple[AssociationRule, ...] = (
    AssociationRule("same_base_name", 0.4, _same_base_name),
    AssociationRule("same_date", 0.3, _same_date),
    AssociationRule("same_participants", 0.2, _shared_participants),
    AssociationRule("same_folder", 0.1, _same_folder),
)


def duplicate_roles(files: Sequence[AnnotatedFile]) -> list[str]:
    """Roles present more than once (quality variants picked downstream)."""
    counts = Counter(f.role for f in files)
    return [
        role.value for role, count in counts.items() if count > 1 and role is not FileRole.UNKNOWN
    ]


class SessionMatchingEngine:
    def __init__(
        self,
        threshold: float | None = None,
        confidence_floor: int | None = None,
        rules: Sequence[AssociationRule] = DEFAULT_RULES,
    ):
        self.threshold = settings.SIMILARITY_THRESHOLD if threshold is None else threshold
        self.confidence_floor = (
            settings.SESSION_CONFIDENCE_FLOOR if confidence_floor is None else confidence_floor
        )
        self.rules = tuple(rules)

    def compare(self, a: AnnotatedFile, b: AnnotatedFile) -> SimilarityVerdict:
        if a.id == b.id:
            return SimilarityVerdict(score=0.0, applied_rules=(), is_match=False)

        score = 0.0
        applied: list[str] = []
        for rule in self.rules:
            if rule.matcher(a, b):
                score += rule.weight
                applied.append(rule.name)

        # Weights are decimal fractions; round away float noise before comparing
        score = round(score, 6)
        return SimilarityVerdict(
            score=score,
            applied_rules=tuple(applied),
            is_match=score >= self.threshold,
        )

    def match(self, files: Sequence[AnnotatedFile]) -> list[SessionGroup]:
        logger.info("Matching files into sessions", file_count=len(files))

        sessions: list[SessionGroup] = []
        assigned: set[str] = set()

        for i, pivot in enumerate(files):
            if pivot.id in assigned:
                continue
            assigned.add(pivot.id)
            session = self._new_session(pivot)

            for candidate in files[i + 1 :]:
                if candidate.id in assigned:
                    continue
                verdict = self.compare(pivot, candidate)
                if verdict.is_match:
                    assigned.add(candidate.id)
                    self._merge_into(session, candidate)
                    logger.debug(
                        "Matched files",
                        pivot=pivot.name,
                        candidate=candidate.name,
                        score=verdict.score,
                        rules=list(verdict.applied_rules),
                    )

            sessions.append(session)

        logger.info("Created sessions", session_count=len(sessions), file_count=len(files))
        return sessions

    def _new_session(self, pivot: AnnotatedFile) -> SessionGroup:
        session = SessionGroup(id=uuid.uuid4().hex[:16], files=[])
        self._merge_into(session, pivot)
        return session

    def _merge_into(self, session: SessionGroup, file: AnnotatedFile) -> None:
        session.files.append(file)
        if session.date is None:
            session.date = file.date
        if session.week is None:
            session.week = file.week
        for name in file.participants or ():
            if name not in session.participants:
                session.participants.append(name)
        session.has_video = session.has_video or file.role is FileRole.VIDEO
        session.has_audio = session.has_audio or file.role is FileRole.AUDIO
        session.has_transcript = session.has_transcript or file.role is FileRole.TRANSCRIPT
        session.has_chat = session.has_chat or file.role is FileRole.CHAT
        if session.folder_name is None and file.parent_folder_name:
            session.folder_name = file.parent_folder_name
        session.confidence = max(session.confidence, file.confidence)

    def validate_session(self, session: SessionGroup) -> list[str]:
        reasons = []
        if not session.has_video and not session.has_audio:
            reasons.append("No video or audio file")
        if not session.files:
            reasons.append("No files in session")
        if session.confidence < self.confidence_floor:
            reasons.append("Very low confidence")
        return reasons

    def validate(self, sessions: Sequence[SessionGroup]) -> ValidationResult:
        result = ValidationResult(valid=[], invalid=[])

        for session in sessions:
            reasons = self.validate_session(session)
            if reasons:
                result.invalid.append(RejectedSession(session=session, reasons=reasons))
            else:
                result.valid.append(session)

        logger.info(
            "Validation results",
            valid_sessions=len(result.valid),
            invalid_sessions=len(result.invalid),
        )
        for rejected in result.invalid[:5]:
            logger.debug(
                "Invalid session", session_id=rejected.session.id, reasons=rejected.reasons
            )
        return result


def summarize(sessions: Sequence[SessionGroup]) -> SessionReport:
    """Counts for reporting; pure and repeatable."""
    total = len(sessions)
    total_files = sum(len(s.files) for s in sessions)

    return SessionReport(
        total_sessions=total,
        with_video=sum(1 for s in sessions if s.has_video),
        with_audio=sum(1 for s in sessions if s.has_audio),
        with_transcript=sum(1 for s in sessions if s.has_transcript),
        with_chat=sum(1 for s in sessions if s.has_chat),
        complete_recordings=sum(1 for s in sessions if s.has_video and s.has_transcript),
        video_only=sum(
            1 for s in sessions if s.has_video and not s.has_audio and not s.has_transcript
        ),
        audio_only=sum(
            1 for s in sessions if s.has_audio and not s.has_video and not s.has_transcript
        ),
        average_files_per_session=total_files / total if total else 0.0,
        high_confidence=sum(1 for s in sessions if s.confidence >= HIGH_CONFIDENCE),
        medium_confidence=sum(
            1 for s in sessions if MEDIUM_CONFIDENCE <= s.confidence < HIGH_CONFIDENCE
        ),
        low_confidence=sum(1 for s in sessions if s.confidence < MEDIUM_CONFIDENCE),
    )
