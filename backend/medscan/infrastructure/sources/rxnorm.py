"""
RxNorm Adapter

Standardized drug nomenclature through the NLM RxNav REST API.
"""

from typing import Any, Dict, Optional

from ...domain.entities.source_result import SourceKind
from ...cross_cutting.error_handling import safe_call
from .base import HttpSourceAdapter


RXNORM_BASE_URL = "https://rxnav.nlm.nih.gov/REST"


class RxNormAdapter(HttpSourceAdapter):
    """
    Resolves a term to an RxCUI, then collects details for it.

    Payload:
        {
            "rxcui": "5640",
            "conceptGroup": [...],      # drugs.json concept groups
            "properties": {...},        # or None
            "relatedGroup": {...},      # or None
            "ndcs": [...]               # possibly empty
        }

    The three follow-up calls are independent; a failure in one leaves its
    field empty without failing the query.
    """

    SOURCE_KIND = SourceKind.DRUG_NOMENCLATURE
    DISPLAY_NAME = "RxNorm"

    def __init__(
        self,
        reliability_weight: float,
        base_url: str = RXNORM_BASE_URL,
        followup_timeout: float = 10.0,
        **kwargs
    ):
        super().__init__(base_url, reliability_weight, **kwargs)
        self._followup_timeout = followup_timeout

    def _fetch(self, term: str) -> Optional[Dict[str, Any]]:
        body = self._get_json("drugs.json", params={"name": term})
        if not isinstance(body, dict):
            return None

        concept_groups = (body.get("drugGroup") or {}).get("conceptGroup") or []
        rxcui = self._first_rxcui(concept_groups)
        if not rxcui:
            return None

        properties = self._followup(f"rxcui/{rxcui}/properties.json")
        related = self._followup(f"rxcui/{rxcui}/related.json", params={"tty": "SCD SBD"})
        ndcs = self._followup(f"rxcui/{rxcui}/ndcs.json")

        return {
            "rxcui": rxcui,
            "conceptGroup": concept_groups,
            "properties": (properties or {}).get("properties"),
            "relatedGroup": (related or {}).get("relatedGroup"),
            "ndcs": self._ndc_list(ndcs),
        }

    @staticmethod
    def _ndc_list(body: Optional[Dict[str, Any]]) -> list:
        group = (body or {}).get("ndcGroup") or {}
        ndc_list = group.get("ndcList") or {}
        return list(ndc_list.get("ndc") or [])

    def _followup(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        body = safe_call(
            self._get_json,
            path,
            params=params,
            timeout=self._followup_timeout,
            default=None,
            logger=self.logger,
        )
        return body if isinstance(body, dict) else None

    @staticmethod
    def _first_rxcui(concept_groups: Any) -> Optional[str]:
        for group in concept_groups if isinstance(concept_groups, list) else []:
            concepts = group.get("conceptProperties") if isinstance(group, dict) else None
            if concepts:
                rxcui = concepts[0].get("rxcui")
                if rxcui:
                    return str(rxcui)
        return None
