"""
Source Adapter Port

Uniform interface over one external medicine data provider.
"""

from abc import ABC, abstractmethod

from ..entities.source_result import SourceResult, SourceKind


class SourceAdapterPort(ABC):
    """
    Port (interface) for external data source adapters.

    Every adapter answers ``query(term)`` with a ``SourceResult`` whose
    status is FOUND, NOT_FOUND or ERROR. A 404-equivalent answer is
    NOT_FOUND; any other failure, including a timeout, is ERROR. Adapters
    never raise to their caller.
    """

    @property
    @abstractmethod
    def source_id(self) -> SourceKind:
        """Provider this adapter wraps."""
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Name recorded in the sources ledger."""
        pass

    @property
    @abstractmethod
    def reliability_weight(self) -> float:
        """Provider reliability in [0, 1]."""
        pass

    @abstractmethod
    def query(self, term: str) -> SourceResult:
        """
        Look up a search term.

        Args:
            term: Query string (brand, generic, ingredient, code, ...)

        Returns:
            SourceResult for this provider and term
        """
        pass

    def close(self) -> None:
        """Release held connections; adapters without any keep this no-op."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.source_id.value})"
