"""
openFDA Adapters

Drugs@FDA approvals, FAERS adverse-event counts and SPL label sections,
all served by api.fda.gov.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

from ...domain.entities.source_result import SourceKind
from .base import HttpSourceAdapter, quote_term


OPENFDA_BASE_URL = "https://api.fda.gov"


class OpenFDAAdapter(HttpSourceAdapter):
    """Shared openFDA search handling; an empty results list is not found."""

    ENDPOINT = ""
    LIMIT = 10

    def __init__(
        self,
        reliability_weight: float,
        base_url: str = OPENFDA_BASE_URL,
        api_key: Optional[str] = None,
        limit: Optional[int] = None,
        **kwargs
    ):
        super().__init__(base_url, reliability_weight, **kwargs)
        self._api_key = api_key
        self._limit = limit or self.LIMIT

    @abstractmethod
    def _search_expression(self, term: str) -> str:
        """openFDA search query for a term."""
        pass

    def _params(self, term: str) -> Dict[str, Any]:
        params = {"search": self._search_expression(term), "limit": self._limit}
        if self._api_key:
            params["api_key"] = self._api_key
        return params

    def _fetch(self, term: str) -> Optional[List[Dict[str, Any]]]:
        body = self._get_json(self.ENDPOINT, params=self._params(term))
        if not isinstance(body, dict):
            return None
        results = body.get("results")
        if not isinstance(results, list) or not results:
            return None
        return results


class DrugsFDAAdapter(OpenFDAAdapter):
    """Regulatory filings (Drugs@FDA) by brand, generic or substance name."""

    SOURCE_KIND = SourceKind.REGULATORY_FILINGS
    DISPLAY_NAME = "FDA Drugs@FDA"
    ENDPOINT = "drug/drugsfda.json"
    LIMIT = 10

    def _search_expression(self, term: str) -> str:
        quoted = quote_term(term)
        return (
            f"openfda.brand_name:{quoted} OR openfda.generic_name:{quoted} "
            f"OR openfda.substance_name:{quoted}"
        )


class AdverseEventsAdapter(OpenFDAAdapter):
    """
    FAERS reaction counts for a product.

    The payload is a list of {"term": reaction, "count": reports}.
    """

    SOURCE_KIND = SourceKind.ADVERSE_EVENTS
    DISPLAY_NAME = "OpenFDA Adverse Events"
    ENDPOINT = "drug/event.json"
    LIMIT = 100
    COUNT_FIELD = "patient.reaction.reactionmeddrapt.exact"

    def _search_expression(self, term: str) -> str:
        quoted = quote_term(term)
        return f"patient.drug.medicinalproduct:{quoted} OR patient.drug.drugindication:{quoted}"

    def _params(self, term: str) -> Dict[str, Any]:
        params = super()._params(term)
        params["count"] = self.COUNT_FIELD
        return params

    def _fetch(self, term: str) -> Optional[List[Dict[str, Any]]]:
        results = super()._fetch(term)
        if not results:
            return None
        counts = [
            {"term": str(row["term"]), "count": int(row.get("count") or 0)}
            for row in results
            if isinstance(row, dict) and row.get("term")
        ]
        return counts or None


class DrugLabelAdapter(OpenFDAAdapter):
    """Structured product labels (indications, warnings, interactions, ...)."""

    SOURCE_KIND = SourceKind.STRUCTURED_LABEL
    DISPLAY_NAME = "OpenFDA Labeling"
    ENDPOINT = "drug/label.json"
    LIMIT = 5

    def _search_expression(self, term: str) -> str:
        quoted = quote_term(term)
        return f"openfda.brand_name:{quoted} OR openfda.generic_name:{quoted}"


class NdcAdapter(OpenFDAAdapter):
    """
    NDC Directory lookup by product code (labeler-product) or package code.

    Only used by the code lookup, never by the aggregation phases, so it
    reports under the regulatory kind with its own display name.
    """

    SOURCE_KIND = SourceKind.REGULATORY_FILINGS
    DISPLAY_NAME = "FDA NDC Directory"
    ENDPOINT = "drug/ndc.json"
    LIMIT = 1

    def _search_expression(self, term: str) -> str:
        field_name = "packaging.package_ndc" if term.count("-") == 2 else "product_ndc"
        return f"{field_name}:{quote_term(term)}"
