"""
Program-cycle detection for renewal students.
"""

from .detector import (
    ProgramCycleDetector,
    ProgramTableError,
    load_renewal_table,
    parse_week_number,
)
from .models import ProgramBoundary, ProgramCycleResult, RenewalTable, SessionPoint

__all__ = [
    "ProgramBoundary",
    "ProgramCycleDetector",
    "ProgramCycleResult",
    "ProgramTableError",
    "RenewalTable",
    "SessionPoint",
    "load_renewal_table",
    "parse_week_number",
]
