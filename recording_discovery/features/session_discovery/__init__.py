"""
Session discovery feature package.

This vertical slice keeps every stage of recording discovery co-located:
hierarchical scanning and name heuristics, the institution-specific domain
extension, session matching, and program-cycle detection.
"""

# Re-export the primary building blocks for easy access.
from .scanning.scanner import HierarchicalScanner, ScanOptions, ScanOutcome  # noqa: F401
from .domain_patterns.extension import DomainPatternExtension, summarize_domain  # noqa: F401
from .matching.service import SessionMatchingEngine, summarize  # noqa: F401
from .program_cycle.detector import ProgramCycleDetector, load_renewal_table  # noqa: F401
