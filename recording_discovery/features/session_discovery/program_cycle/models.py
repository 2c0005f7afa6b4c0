"""
Program cycle models.

The renewal-student table is configuration data: it is loaded from JSON and
validated here so the detector only ever sees well-formed windows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, Field, model_validator


class ProgramWindow(BaseModel):
    """One enrollment cycle, as an inclusive range of absolute week numbers."""

    cycle: int = Field(..., ge=1)
    start_week: int = Field(..., ge=0)
    end_week: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self) -> ProgramWindow:
        if self.end_week < self.start_week:
            raise ValueError(
                f"cycle {self.cycle}: end_week {self.end_week} < start_week {self.start_week}"
            )
        return self


class RenewalStudent(BaseModel):
    name: str
    coach: str | None = None
    aliases: list[str] = Field(default_factory=list)
    program_lengths: list[int] = Field(default_factory=lambda: [48])
    start_date: date | None = None
    known_programs: list[ProgramWindow] = Field(..., min_length=1)

    @property
    def last_known_week(self) -> int:
        return max(p.end_week for p in self.known_programs)

    @property
    def nominal_program_length(self) -> int:
        return self.program_lengths[0] if self.program_lengths else 48


class RenewalTable(BaseModel):
    students: list[RenewalStudent] = Field(default_factory=list)

    def lookup(self, student_name: str | None) -> RenewalStudent | None:
        """First-name, case-insensitive lookup including known misspellings."""
        key = normalize_first_name(student_name)
        if not key:
            return None
        for student in self.students:
            names = [student.name, *student.aliases]
            if key in (normalize_first_name(n) for n in names):
                return student
        return None


def normalize_first_name(name: str | None) -> str:
    if not name:
        return ""
    parts = name.strip().split()
    return parts[0].lower() if parts else ""


@dataclass(slots=True, frozen=True)
class ProgramCycleResult:
    program_cycle: int | None
    is_renewal: bool
    cycle_week: float
    absolute_week: float
    session_date: date | str | None = None


@dataclass(slots=True, frozen=True)
class SessionPoint:
    """One session of a student, as fed to boundary detection (time-ordered)."""

    week: str | int | None
    date: date | str | None


@dataclass(slots=True, frozen=True)
class ProgramBoundary:
    index: int
    from_week: float
    to_week: float
    cycle: int
    date_gap: int
