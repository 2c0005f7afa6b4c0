"""
Institution-specific scanning rules and naming-convention learning.
"""

from .extension import DomainPatternExtension, DomainReport, summarize_domain
from .rules import DomainRuleSet, LearnedConventions

__all__ = [
    "DomainPatternExtension",
    "DomainReport",
    "DomainRuleSet",
    "LearnedConventions",
    "summarize_domain",
]
