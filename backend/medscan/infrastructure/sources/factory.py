"""
Source Adapter Factory

Builds the six source adapters from configuration.
"""

from typing import Dict, Optional

import requests

from ...config.settings import SourcesConfig
from ...domain.entities.source_result import SourceKind
from ...domain.ports.source_adapter import SourceAdapterPort
from .openfda import DrugsFDAAdapter, AdverseEventsAdapter, DrugLabelAdapter, NdcAdapter
from .rxnorm import RxNormAdapter
from .dailymed import DailyMedAdapter
from .local_catalog import LocalCatalogAdapter


class SourceAdapterFactory:
    """
    Factory for the external source adapters.

    Usage:
        adapters = SourceAdapterFactory.create_all(config.sources)
        engine = AggregationEngineBuilder().with_adapters(adapters).build()
    """

    @staticmethod
    def create(
        kind: SourceKind,
        config: Optional[SourcesConfig] = None,
        session: Optional[requests.Session] = None
    ) -> SourceAdapterPort:
        """
        Create one adapter.

        Args:
            kind: Provider to wrap
            config: Source settings (defaults when None)
            session: Optional shared HTTP session, mainly for tests

        Returns:
            SourceAdapterPort implementation
        """
        config = config or SourcesConfig()
        weight = config.weight_for(kind.value)
        http_options = {
            "timeout": config.timeout_seconds,
            "session": session,
            "user_agent": config.user_agent,
        }

        if kind == SourceKind.REGULATORY_FILINGS:
            return DrugsFDAAdapter(
                weight,
                base_url=config.openfda_base_url,
                api_key=config.openfda_api_key,
                limit=config.regulatory_limit,
                **http_options
            )

        elif kind == SourceKind.DRUG_NOMENCLATURE:
            return RxNormAdapter(
                weight,
                base_url=config.rxnorm_base_url,
                followup_timeout=config.followup_timeout_seconds,
                **http_options
            )

        elif kind == SourceKind.LABEL_REPOSITORY:
            return DailyMedAdapter(weight)

        elif kind == SourceKind.ADVERSE_EVENTS:
            return AdverseEventsAdapter(
                weight,
                base_url=config.openfda_base_url,
                api_key=config.openfda_api_key,
                limit=config.adverse_event_limit,
                **http_options
            )

        elif kind == SourceKind.STRUCTURED_LABEL:
            return DrugLabelAdapter(
                weight,
                base_url=config.openfda_base_url,
                api_key=config.openfda_api_key,
                limit=config.label_limit,
                **http_options
            )

        elif kind == SourceKind.LOCAL_CATALOG:
            return LocalCatalogAdapter(weight, catalog_path=config.catalog_path)

        else:
            raise ValueError(f"Unknown source kind: {kind}")

    @staticmethod
    def create_all(
        config: Optional[SourcesConfig] = None,
        session: Optional[requests.Session] = None
    ) -> Dict[SourceKind, SourceAdapterPort]:
        """Create one adapter per source kind, keyed by kind."""
        return {
            kind: SourceAdapterFactory.create(kind, config, session)
            for kind in SourceKind
        }

    @staticmethod
    def create_ndc(
        config: Optional[SourcesConfig] = None,
        session: Optional[requests.Session] = None
    ) -> NdcAdapter:
        """Create the NDC Directory adapter used by the code lookup."""
        config = config or SourcesConfig()
        return NdcAdapter(
            config.weight_for(SourceKind.REGULATORY_FILINGS.value),
            base_url=config.openfda_base_url,
            api_key=config.openfda_api_key,
            timeout=config.timeout_seconds,
            session=session,
            user_agent=config.user_agent,
        )
