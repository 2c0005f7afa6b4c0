"""
Program cycle detection for renewal students.

Students who re-enroll keep counting weeks across programs (week 30 may be
week 6 of their second program). The detector maps absolute week numbers to
(cycle, week-within-cycle) using the renewal table, and can spot cycle
boundaries in a student's session history that the table does not list.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path

from pydantic import ValidationError

from recording_discovery.config import settings
from recording_discovery.infrastructure.observability.logging import get_logger
from recording_discovery.models.domain.session_domain import SessionGroup

from .models import ProgramBoundary, ProgramCycleResult, RenewalStudent, RenewalTable, SessionPoint

logger = get_logger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).resolve().parent / "data" / "renewal_students.json"

# A drop of more than this many weeks, or a gap of more than this many days,
# starts a new cycle
WEEK_RESET_TOLERANCE = 5
MAX_SESSION_GAP_DAYS = 28


class ProgramTableError(Exception):
    """Raised when the renewal-student table cannot be loaded."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


def load_renewal_table(path: str | Path | None = None) -> RenewalTable:
    """
    Load and validate the renewal-student table.

    Args:
        path: JSON file; defaults to RENEWAL_TABLE_PATH or the packaged table

    Raises:
        ProgramTableError: If the file is missing, not JSON, or malformed
    """
    table_path = Path(path or settings.RENEWAL_TABLE_PATH or DEFAULT_TABLE_PATH)
    try:
        data = json.loads(table_path.read_text(encoding="utf-8"))
        table = RenewalTable.model_validate(data)
    except (OSError, ValueError) as e:
        # pydantic's ValidationError is a ValueError subclass
        kind = "invalid" if isinstance(e, ValidationError) else "unreadable"
        logger.error("Renewal table load failed", path=str(table_path), kind=kind, error=str(e))
        raise ProgramTableError(f"Renewal table {kind}: {e}", path=str(table_path)) from e

    logger.debug("Loaded renewal table", path=str(table_path), students=len(table.students))
    return table


def parse_week_number(week: str | int | float | None) -> float:
    """
    Numeric week for a week token.

    "00" and "0" are the onboarding week 0; "00A"/"00B" are the first and
    second onboarding sessions (0.1, 0.2). Missing tokens count as week 1.
    """
    if isinstance(week, (int, float)) and not isinstance(week, bool):
        return week
    if not week:
        return 1

    token = str(week).strip().upper()
    if token in ("00", "0"):
        return 0
    if token == "00A":
        return 0.1
    if token == "00B":
        return 0.2

    match = re.search(r"\d+", token)
    return int(match.group(0)) if match else 1


def _to_date(value: date | str | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def calculate_date_gap(first: date | str | None, second: date | str | None) -> int:
    """Whole days between two dates; 0 when either is unknown."""
    d1, d2 = _to_date(first), _to_date(second)
    if d1 is None or d2 is None:
        return 0
    return abs((d2 - d1).days)


class ProgramCycleDetector:
    def __init__(self, table: RenewalTable | None = None):
        self.table = table if table is not None else load_renewal_table()

    def detect(
        self,
        student_name: str | None,
        week_number: str | int | None,
        session_date: date | str | None = None,
    ) -> ProgramCycleResult:
        """Resolve the program cycle and cycle-relative week of one session."""
        week = parse_week_number(week_number)
        student = self.table.lookup(student_name)

        if student is None:
            return ProgramCycleResult(
                program_cycle=None,
                is_renewal=False,
                cycle_week=week,
                absolute_week=week,
                session_date=session_date,
            )

        cycle, cycle_week = self._resolve_cycle(student, week)
        return ProgramCycleResult(
            program_cycle=cycle,
            is_renewal=cycle > 1,
            cycle_week=cycle_week,
            absolute_week=week,
            session_date=session_date,
        )

    def _resolve_cycle(self, student: RenewalStudent, week: float) -> tuple[int, float]:
        if week > student.last_known_week:
            length = student.nominal_program_length
            return math.ceil(week / length), ((week - 1) % length) + 1

        for window in student.known_programs:
            if window.start_week <= week <= window.end_week:
                return window.cycle, week - window.start_week + 1

        # Onboarding weeks (0, 0.1, 0.2) sit before the first window
        return 1, week

    def detect_program_boundaries(self, sessions: Sequence[SessionPoint]) -> list[ProgramBoundary]:
        """
        Cycle boundaries in one student's time-ordered session history.

        A new cycle starts where the week number drops by more than five or
        more than 28 days pass between consecutive sessions.
        """
        boundaries: list[ProgramBoundary] = []
        current_cycle = 1
        last_week: float = 0

        for index, session in enumerate(sessions):
            week = parse_week_number(session.week)

            if index > 0:
                gap = calculate_date_gap(sessions[index - 1].date, session.date)
                if week < last_week - WEEK_RESET_TOLERANCE or gap > MAX_SESSION_GAP_DAYS:
                    current_cycle += 1
                    boundaries.append(
                        ProgramBoundary(
                            index=index,
                            from_week=last_week,
                            to_week=week,
                            cycle=current_cycle,
                            date_gap=gap,
                        )
                    )

            last_week = week

        return boundaries

    def is_renewal_student(self, student_name: str | None) -> bool:
        return self.table.lookup(student_name) is not None

    def get_student_program_info(self, student_name: str | None) -> RenewalStudent | None:
        return self.table.lookup(student_name)

    def annotate_session(
        self, session: SessionGroup, student_name: str | None = None
    ) -> ProgramCycleResult:
        """
        Attach a ProgramCycleResult to a session group.

        Without an explicit student, the first participant found in the
        renewal table is used, falling back to the first participant.
        """
        if student_name is None:
            renewal = [p for p in session.participants if self.is_renewal_student(p)]
            candidates = renewal or session.participants
            student_name = candidates[0] if candidates else None

        week_token = session.week.token if session.week else None
        session_date = session.date.as_date() if session.date else None

        result = self.detect(student_name, week_token, session_date)
        session.program_cycle = result
        return result
