"""
Local Catalog Adapter

Offline fallback: substring lookup in a bundled JSON catalog of medicines.
"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import json
import logging

from ...domain.entities.source_result import SourceKind
from .base import BaseSourceAdapter


logger = logging.getLogger(__name__)

MATCH_FIELDS = ("brandName", "genericName", "activeIngredient")


def load_catalog(path: str) -> List[Dict[str, Any]]:
    """
    Load catalog entries from a JSON file.

    A missing or unreadable file yields an empty catalog.
    """
    catalog_path = Path(path)
    if not catalog_path.exists():
        logger.warning(f"Local medicine catalog not found: {path}")
        return []

    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load local medicine catalog {path}: {e}")
        return []

    entries = data.get("medicines", []) if isinstance(data, dict) else data
    entries = [entry for entry in entries if isinstance(entry, dict)]
    logger.info(f"Local medicine catalog loaded: {len(entries)} entries")
    return entries


class LocalCatalogAdapter(BaseSourceAdapter):
    """
    In-memory catalog lookup.

    A term matches an entry when it is a case-insensitive substring of the
    entry's brand name, generic name or active ingredient. The payload is
    the list of matching entries in catalog order.
    """

    SOURCE_KIND = SourceKind.LOCAL_CATALOG
    DISPLAY_NAME = "Local Database"

    def __init__(
        self,
        reliability_weight: float = 0.5,
        entries: Optional[List[Dict[str, Any]]] = None,
        catalog_path: Optional[str] = None
    ):
        super().__init__(reliability_weight)
        self._catalog_path = catalog_path
        self._entries = entries

    @property
    def entries(self) -> List[Dict[str, Any]]:
        if self._entries is None:
            self._entries = load_catalog(self._catalog_path) if self._catalog_path else []
        return self._entries

    def _fetch(self, term: str) -> Optional[List[Dict[str, Any]]]:
        if not self.entries:
            return None

        needle = term.lower()
        matches = [
            entry for entry in self.entries
            if any(needle in str(entry.get(name) or "").lower() for name in MATCH_FIELDS)
        ]
        return matches or None
