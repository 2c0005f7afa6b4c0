"""
Heuristic metadata extraction from file and folder names.

All functions are pure: a name that matches nothing yields ``None`` rather
than an error, and the caller's confidence score drops accordingly.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from recording_discovery.models.domain.drive_domain import RemoteFile
from recording_discovery.models.domain.session_domain import (
    AnnotatedFile,
    DateMatch,
    FileRole,
    WeekMatch,
)

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v")
AUDIO_EXTENSIONS = (".m4a", ".mp3", ".wav", ".aac", ".ogg", ".wma")
TRANSCRIPT_EXTENSIONS = (".vtt", ".srt")
GMT_TIMESTAMP_RE = re.compile(r"gmt\d{8}-\d{6}", re.IGNORECASE)

MIN_YEAR = 1900
MAX_YEAR = 2100

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
_MONTH = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?"

# Tokens that show up capitalized in recording names but are never people
STRUCTURAL_WORDS = {
    "zoom",
    "recording",
    "recordings",
    "meeting",
    "call",
    "session",
    "sessions",
    "coaching",
    "with",
    "and",
    "week",
    "wk",
    "module",
    "chat",
    "transcript",
    "caption",
    "captions",
    "audio",
    "video",
    "only",
    "gmt",
    "the",
    "for",
    "of",
    "coach",
    "mentor",
    "student",
    "program",
    "cohort",
    "batch",
    "part",
    "notes",
    "final",
    "gameplan",
    "january",
    "february",
    "march",
    "april",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
    *MONTHS.keys(),
}


def detect_file_role(file_name: str) -> FileRole:
    """Infer the role a file plays in a session from its name."""
    lower_name = file_name.lower()

    # Chat exports keep "chat" in the name whatever their extension
    if "chat" in lower_name:
        return FileRole.CHAT
    if lower_name.endswith(VIDEO_EXTENSIONS):
        return FileRole.VIDEO
    if lower_name.endswith(AUDIO_EXTENSIONS):
        return FileRole.AUDIO
    if lower_name.endswith(TRANSCRIPT_EXTENSIONS):
        return FileRole.TRANSCRIPT
    if "transcript" in lower_name or "caption" in lower_name:
        return FileRole.TRANSCRIPT
    if lower_name.endswith(".txt") and GMT_TIMESTAMP_RE.search(lower_name):
        return FileRole.CHAT
    return FileRole.UNKNOWN


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

DateParts = Callable[[re.Match], tuple[int, int, int]]

DATE_PATTERNS: list[tuple[re.Pattern, DateParts]] = [
    # YYYY-MM-DD, YYYY/MM/DD
    (
        re.compile(r"(?<!\d)(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?!\d)"),
        lambda m: (int(m.group(1)), int(m.group(2)), int(m.group(3))),
    ),
    # MM-DD-YYYY, MM/DD/YYYY
    (
        re.compile(r"(?<!\d)(\d{1,2})[-/](\d{1,2})[-/](\d{4})(?!\d)"),
        lambda m: (int(m.group(3)), int(m.group(1)), int(m.group(2))),
    ),
    # Mar 1, 2024
    (
        re.compile(
            rf"(?<![A-Za-z]){_MONTH}[\s_-]+(\d{{1,2}})(?:st|nd|rd|th)?,?[\s_-]+(\d{{4}})(?!\d)",
            re.IGNORECASE,
        ),
        lambda m: (int(m.group(3)), MONTHS[m.group(1).lower()[:3]], int(m.group(2))),
    ),
    # 1 Mar 2024
    (
        re.compile(rf"(?<!\d)(\d{{1,2}})[\s_-]+{_MONTH}[\s_-]+(\d{{4}})(?!\d)", re.IGNORECASE),
        lambda m: (int(m.group(3)), MONTHS[m.group(2).lower()[:3]], int(m.group(1))),
    ),
    # YYYYMMDD
    (
        re.compile(r"(?<!\d)(\d{4})(\d{2})(\d{2})(?!\d)"),
        lambda m: (int(m.group(1)), int(m.group(2)), int(m.group(3))),
    ),
    # Bare 8-digit token read as MMDDYYYY
    (
        re.compile(r"(?<!\d)(\d{2})(\d{2})(\d{4})(?!\d)"),
        lambda m: (int(m.group(3)), int(m.group(1)), int(m.group(2))),
    ),
]


def _valid_date_parts(year: int, month: int, day: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31


def extract_date(name: str | None) -> DateMatch | None:
    """First plausible date in the name, trying patterns in priority order."""
    if not name:
        return None

    for pattern, parts in DATE_PATTERNS:
        for match in pattern.finditer(name):
            year, month, day = parts(match)
            if _valid_date_parts(year, month, day):
                return DateMatch(
                    raw=match.group(0),
                    pattern=pattern.pattern,
                    year=year,
                    month=month,
                    day=day,
                )
    return None


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

_NAME = r"[A-Z][a-z]+(?: +[A-Z][a-z]+)*"

PARTICIPANT_PATTERNS = [
    # "with Alex", "Coaching_with_Alex"
    re.compile(rf"(?<![A-Za-z])(?i:with)[\s_-]+({_NAME})"),
    # "Alex-Sam", "Alex & Sam"
    re.compile(rf"(?<![A-Za-z])({_NAME}) *[-&] *({_NAME})"),
    # "Alex and Sam"
    re.compile(rf"(?<![A-Za-z])({_NAME})[ _]+and[ _]+({_NAME})"),
    # "Coaching Alex", "coaching_for_Alex"
    re.compile(rf"(?<![A-Za-z])(?i:coaching)[\s_-]+(?:(?i:with|for)[\s_-]+)?({_NAME})"),
    # "Alex Sam call"
    re.compile(
        r"(?<![A-Za-z])([A-Z][a-z]+)[ _]+([A-Z][a-z]+)[ _]+"
        r"(?i:call|session|meeting|coaching)(?![A-Za-z])"
    ),
]


def clean_participant(candidate: str) -> str | None:
    """Drop structural words from a captured name; None if nothing is left."""
    tokens = [t for t in candidate.split() if t.lower() not in STRUCTURAL_WORDS]
    return " ".join(tokens) if tokens else None


def extract_participants(name: str | None) -> tuple[str, ...] | None:
    """Candidate participant names in discovery order, or None."""
    if not name:
        return None

    participants: list[str] = []
    for pattern in PARTICIPANT_PATTERNS:
        for match in pattern.finditer(name):
            for group in match.groups():
                if not group:
                    continue
                cleaned = clean_participant(group)
                if cleaned and cleaned not in participants:
                    participants.append(cleaned)

    return tuple(participants) if participants else None


# ---------------------------------------------------------------------------
# Week numbers
# ---------------------------------------------------------------------------

_WEEK_TOKEN = r"(\d+(?:[AB](?![A-Za-z]))?)"

WEEK_PATTERNS = [
    re.compile(rf"week[\s_-]*{_WEEK_TOKEN}", re.IGNORECASE),
    re.compile(rf"(?<![A-Za-z])wk[\s_-]*{_WEEK_TOKEN}", re.IGNORECASE),
    re.compile(rf"(?<![A-Za-z])w{_WEEK_TOKEN}(?![0-9])", re.IGNORECASE),
    re.compile(r"session[\s_-]*(\d+)", re.IGNORECASE),
    re.compile(r"module[\s_-]*(\d+)", re.IGNORECASE),
]


def extract_week(name: str | None) -> WeekMatch | None:
    if not name:
        return None

    for pattern in WEEK_PATTERNS:
        match = pattern.search(name)
        if match:
            token = match.group(1).upper()
            return WeekMatch(
                number=int(re.match(r"\d+", token).group(0)),
                raw=match.group(0),
                token=token,
                pattern=pattern.pattern,
            )
    return None


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------


def calculate_confidence(
    file_name: str,
    folder_name: str = "",
    *,
    has_date: bool,
    has_participants: bool,
    has_week: bool,
) -> int:
    """Additive 0-100 trust score for the extracted metadata."""
    score = 0
    combined = f"{file_name} {folder_name or ''}".lower()

    if has_date:
        score += 20
    if has_participants:
        score += 20
    if has_week:
        score += 15
    if "zoom" in combined:
        score += 15
    if "recording" in combined:
        score += 10
    if "coaching" in combined or "session" in combined:
        score += 10
    if "call" in combined or "meeting" in combined:
        score += 10

    return min(score, 100)


def annotate_file(file: RemoteFile, parent_folder_id: str, parent_folder_name: str) -> AnnotatedFile:
    """Build the AnnotatedFile for an admitted file; folder name is the fallback source."""
    date = extract_date(file.name) or extract_date(parent_folder_name)
    participants = extract_participants(file.name) or extract_participants(parent_folder_name)
    week = extract_week(file.name) or extract_week(parent_folder_name)

    return AnnotatedFile(
        file=file,
        parent_folder_id=parent_folder_id,
        parent_folder_name=parent_folder_name,
        role=detect_file_role(file.name),
        date=date,
        participants=participants,
        week=week,
        confidence=calculate_confidence(
            file.name,
            parent_folder_name,
            has_date=date is not None,
            has_participants=participants is not None,
            has_week=week is not None,
        ),
    )
