# recording_discovery/models/domain/session_domain.py
"""
Session Domain Models
Annotated files produced by the scanner and the session groups built from them.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from recording_discovery.models.domain.drive_domain import RemoteFile


class FileRole(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    TRANSCRIPT = "transcript"
    CHAT = "chat"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class DateMatch:
    """A date found in a file or folder name."""

    raw: str
    pattern: str
    year: int
    month: int
    day: int

    def as_date(self) -> date | None:
        try:
            return date(self.year, self.month, self.day)
        except ValueError:
            # e.g. 02-31: components are in range but the day does not exist
            return None


@dataclass(slots=True, frozen=True)
class WeekMatch:
    """A week/session number found in a file or folder name."""

    number: int
    raw: str
    token: str  # digits plus optional onboarding suffix, e.g. "00A"
    pattern: str


@dataclass(slots=True, frozen=True)
class DomainAnnotation:
    """Institution-specific identifiers picked up by the domain rule table."""

    student_id: str | None = None
    session_type: str | None = None
    program: str | None = None
    cohort: str | None = None
    coach: str | None = None


@dataclass(slots=True, frozen=True)
class AnnotatedFile:
    """A RemoteFile enriched with inferred role, date, participants, week and confidence."""

    file: RemoteFile
    parent_folder_id: str
    parent_folder_name: str
    role: FileRole
    date: DateMatch | None = None
    participants: tuple[str, ...] | None = None
    week: WeekMatch | None = None
    confidence: int = 0
    domain: DomainAnnotation | None = None

    @property
    def id(self) -> str:
        return self.file.id

    @property
    def name(self) -> str:
        return self.file.name


@dataclass(slots=True)
class SessionGroup:
    """Files believed to come from one real coaching session."""

    id: str
    files: list[AnnotatedFile]
    date: DateMatch | None = None
    participants: list[str] = field(default_factory=list)
    week: WeekMatch | None = None
    has_video: bool = False
    has_audio: bool = False
    has_transcript: bool = False
    has_chat: bool = False
    folder_name: str | None = None
    confidence: int = 0
    # Set by downstream enrichment (see program_cycle.annotate_session)
    program_cycle: Any = None

    @property
    def roles(self) -> list[str]:
        flags = (
            (self.has_video, FileRole.VIDEO),
            (self.has_audio, FileRole.AUDIO),
            (self.has_transcript, FileRole.TRANSCRIPT),
            (self.has_chat, FileRole.CHAT),
        )
        return [role.value for present, role in flags if present]


@dataclass(slots=True, frozen=True)
class SimilarityVerdict:
    score: float
    applied_rules: tuple[str, ...]
    is_match: bool


@dataclass(slots=True)
class RejectedSession:
    session: SessionGroup
    reasons: list[str]


@dataclass(slots=True)
class ValidationResult:
    valid: list[SessionGroup]
    invalid: list[RejectedSession]


@dataclass(slots=True, frozen=True)
class SessionReport:
    """Summary counts over a list of session groups."""

    total_sessions: int
    with_video: int
    with_audio: int
    with_transcript: int
    with_chat: int
    complete_recordings: int
    video_only: int
    audio_only: int
    average_files_per_session: float
    high_confidence: int
    medium_confidence: int
    low_confidence: int
