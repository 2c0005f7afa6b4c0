"""
Institution-specific rule table and learned naming conventions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from recording_discovery.features.session_discovery.scanning.extraction import (
    STRUCTURAL_WORDS,
    clean_participant,
)

SESSION_TYPE_PATTERNS = [
    re.compile(r"coaching", re.IGNORECASE),
    re.compile(r"mentoring", re.IGNORECASE),
    re.compile(r"tutoring", re.IGNORECASE),
    re.compile(r"consultation", re.IGNORECASE),
    re.compile(r"review", re.IGNORECASE),
    re.compile(r"feedback", re.IGNORECASE),
    re.compile(r"assessment", re.IGNORECASE),
    re.compile(r"evaluation", re.IGNORECASE),
    re.compile(r"office[-_ ]?hours", re.IGNORECASE),
    re.compile(r"check[-_ ]?in", re.IGNORECASE),
    re.compile(r"onboarding", re.IGNORECASE),
    re.compile(r"workshop", re.IGNORECASE),
]

PROGRAM_PATTERNS = [
    re.compile(r"data[-_ ]?science", re.IGNORECASE),
    re.compile(r"machine[-_ ]?learning", re.IGNORECASE),
    re.compile(r"web[-_ ]?dev", re.IGNORECASE),
    re.compile(r"full[-_ ]?stack", re.IGNORECASE),
    re.compile(r"frontend", re.IGNORECASE),
    re.compile(r"backend", re.IGNORECASE),
    re.compile(r"python", re.IGNORECASE),
    re.compile(r"javascript", re.IGNORECASE),
    re.compile(r"react", re.IGNORECASE),
    re.compile(r"(?<![A-Za-z])node(?![A-Za-z])", re.IGNORECASE),
    re.compile(r"(?<![A-Za-z])sql(?![A-Za-z])", re.IGNORECASE),
    re.compile(r"statistics", re.IGNORECASE),
    re.compile(r"algorithm", re.IGNORECASE),
]

COHORT_PATTERNS = [
    re.compile(r"cohort[-_ ]?\d+", re.IGNORECASE),
    re.compile(r"batch[-_ ]?\d+", re.IGNORECASE),
    re.compile(r"\d{4}[-_ ]?(?:spring|summer|fall|winter)", re.IGNORECASE),
    re.compile(r"(?<![A-Za-z])C\d+(?!\d)"),
]

COACH_INDICATORS = ("coach", "mentor", "instructor", "with", "by")

CONVENTIONS = (
    "date-first",
    "week-first",
    "session-first",
    "institution-id-first",
    "underscore-separator",
    "dash-separator",
)

_CAPITALIZED_RE = re.compile(r"(?<![A-Za-z])[A-Z][a-z]+(?: [A-Z][a-z]+)*")


def _normalize_vocabulary_match(text: str) -> str:
    return re.sub(r"[-_]", " ", text).strip().lower()


def contains_name(text: str, name: str) -> bool:
    return re.search(rf"(?<![A-Za-z]){re.escape(name)}(?![a-z])", text) is not None


@dataclass(slots=True)
class DomainRuleSet:
    """Fixed rule table for one institution's naming conventions."""

    institution: str
    student_patterns: list[re.Pattern]
    student_id_patterns: list[re.Pattern]
    learning_conventions: dict[str, re.Pattern]
    matching_conventions: dict[str, re.Pattern]
    session_type_patterns: list[re.Pattern] = field(default_factory=lambda: SESSION_TYPE_PATTERNS)
    program_patterns: list[re.Pattern] = field(default_factory=lambda: PROGRAM_PATTERNS)
    cohort_patterns: list[re.Pattern] = field(default_factory=lambda: COHORT_PATTERNS)

    @classmethod
    def for_institution(cls, institution: str = "Ivylevel") -> DomainRuleSet:
        inst = re.escape(institution)
        id_first = re.compile(rf"^S\d+[-_]?{inst}", re.IGNORECASE)
        return cls(
            institution=institution,
            student_patterns=[
                re.compile(rf"S\d+[-_]?{inst}", re.IGNORECASE),
                re.compile(rf"{inst}[-_]?S\d+", re.IGNORECASE),
                re.compile(r"Student[-_]?\d+", re.IGNORECASE),
                re.compile(r"(?<![A-Za-z])S\d+[-_]?Session", re.IGNORECASE),
                re.compile(r"Session[-_]?S\d+", re.IGNORECASE),
            ],
            student_id_patterns=[
                re.compile(rf"S(\d+)[-_]?{inst}", re.IGNORECASE),
                re.compile(rf"{inst}[-_]?S(\d+)", re.IGNORECASE),
                re.compile(r"Student[-_]?(\d+)", re.IGNORECASE),
                re.compile(r"(?<![A-Za-z])ID[-_]?(\d+)", re.IGNORECASE),
            ],
            learning_conventions={
                "date-first": re.compile(r"^\d{4}-\d{2}-\d{2}"),
                "week-first": re.compile(r"^Week\s*\d+", re.IGNORECASE),
                "session-first": re.compile(r"^Session\s*\d+", re.IGNORECASE),
                "institution-id-first": id_first,
                "underscore-separator": re.compile(r"_recording_", re.IGNORECASE),
                "dash-separator": re.compile(r"-recording-", re.IGNORECASE),
            },
            matching_conventions={
                "date-first": re.compile(r"^\d{4}-\d{2}-\d{2}"),
                "week-first": re.compile(r"^Week\s*\d+", re.IGNORECASE),
                "session-first": re.compile(r"^Session\s*\d+", re.IGNORECASE),
                "institution-id-first": id_first,
                "underscore-separator": re.compile(r"_"),
                "dash-separator": re.compile(r"-"),
            },
        )

    def extract_student_id(self, text: str | None) -> str | None:
        if not text:
            return None
        for pattern in self.student_id_patterns:
            match = pattern.search(text)
            if match:
                return f"S{match.group(1)}"
        return None

    def extract_session_type(self, text: str | None) -> str | None:
        return self._first_vocabulary_match(self.session_type_patterns, text)

    def extract_program(self, text: str | None) -> str | None:
        return self._first_vocabulary_match(self.program_patterns, text)

    def extract_cohort(self, text: str | None) -> str | None:
        if not text:
            return None
        for pattern in self.cohort_patterns:
            match = pattern.search(text)
            if match:
                return match.group(0)
        return None

    def matches_student_pattern(self, text: str) -> bool:
        return any(p.search(text) for p in self.student_patterns)

    def matches_any_rule(self, text: str) -> bool:
        return (
            self.matches_student_pattern(text)
            or any(p.search(text) for p in self.session_type_patterns)
            or any(p.search(text) for p in self.program_patterns)
        )

    def _first_vocabulary_match(self, patterns: list[re.Pattern], text: str | None) -> str | None:
        if not text:
            return None
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                return _normalize_vocabulary_match(match.group(0))
        return None


@dataclass(slots=True)
class LearnedConventions:
    """What the learning pre-pass observed in a folder tree."""

    folder_structures: dict[int, set[str]] = field(default_factory=dict)
    naming_conventions: set[str] = field(default_factory=set)
    participant_names: set[str] = field(default_factory=set)

    def reset(self) -> None:
        self.folder_structures.clear()
        self.naming_conventions.clear()
        self.participant_names.clear()

    def record_folder(self, depth: int, name: str) -> None:
        self.folder_structures.setdefault(depth, set()).add(name)

    def learn_from_name(self, name: str, rules: DomainRuleSet) -> None:
        excluded = STRUCTURAL_WORDS | {rules.institution.lower()}
        for match in _CAPITALIZED_RE.finditer(name):
            tokens = [t for t in match.group(0).split() if t.lower() not in excluded]
            candidate = clean_participant(" ".join(tokens)) if tokens else None
            if candidate:
                self.participant_names.add(candidate)

        for convention, pattern in rules.learning_conventions.items():
            if pattern.search(name):
                self.naming_conventions.add(convention)

    def matches_convention(self, file_name: str, rules: DomainRuleSet) -> bool:
        return any(
            rules.matching_conventions[c].search(file_name)
            for c in sorted(self.naming_conventions)
            if c in rules.matching_conventions
        )
