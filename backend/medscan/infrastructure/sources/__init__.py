"""
Source Adapters

One adapter per external medicine data provider.
"""

from .base import BaseSourceAdapter, HttpSourceAdapter
from .openfda import DrugsFDAAdapter, AdverseEventsAdapter, DrugLabelAdapter, NdcAdapter
from .rxnorm import RxNormAdapter
from .dailymed import DailyMedAdapter
from .local_catalog import LocalCatalogAdapter, load_catalog
from .factory import SourceAdapterFactory

__all__ = [
    "BaseSourceAdapter",
    "HttpSourceAdapter",
    "DrugsFDAAdapter",
    "AdverseEventsAdapter",
    "DrugLabelAdapter",
    "NdcAdapter",
    "RxNormAdapter",
    "DailyMedAdapter",
    "LocalCatalogAdapter",
    "load_catalog",
    "SourceAdapterFactory",
]
