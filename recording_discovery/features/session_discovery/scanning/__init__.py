"""
Scanning package for session discovery.

Contains the depth-first folder scanner and the pure name heuristics it uses
to annotate admitted files.
"""

from .extraction import (
    annotate_file,
    calculate_confidence,
    detect_file_role,
    extract_date,
    extract_participants,
    extract_week,
)
from .scanner import HierarchicalScanner, ScanExtension, ScanFailure, ScanOptions, ScanOutcome

__all__ = [
    "HierarchicalScanner",
    "ScanExtension",
    "ScanFailure",
    "ScanOptions",
    "ScanOutcome",
    "annotate_file",
    "calculate_confidence",
    "detect_file_role",
    "extract_date",
    "extract_participants",
    "extract_week",
]
