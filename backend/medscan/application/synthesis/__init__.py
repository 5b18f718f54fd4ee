"""
Search Term Synthesis
"""

from .search_terms import SearchTermSynthesizer, strip_dosage, is_searchable_text, top_terms

__all__ = [
    "SearchTermSynthesizer",
    "strip_dosage",
    "is_searchable_text",
    "top_terms",
]
