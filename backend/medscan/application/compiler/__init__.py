"""
Profile Compilation

Turns the vision result and collected source results into the canonical
medicine profile, and cross-references fields reported by several sources.
"""

from .source_facts import SourceFacts, extract_facts, facts_from_vision, VISION_REPORTER
from .cross_reference import CrossReferenceValidator, is_valid_ndc, normalize
from .profile_compiler import ProfileCompiler, merge_reaction_counts

__all__ = [
    "SourceFacts",
    "extract_facts",
    "facts_from_vision",
    "VISION_REPORTER",
    "CrossReferenceValidator",
    "is_valid_ndc",
    "normalize",
    "ProfileCompiler",
    "merge_reaction_counts",
]
