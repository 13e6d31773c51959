"""Capability sets a business type implements to plug into the pipeline.

A business type supplies one record schema and implements whichever roles it
needs. None of the roles know about file formats; the codec is chosen per
invocation.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from ..formats import RecordSchema


class BusinessProvider:
    business_type: str = ""
    schema: RecordSchema

    def headers(self) -> List[str]:
        return self.schema.headers()


class ExportProvider(BusinessProvider, ABC):
    export_file_name: Optional[str] = None

    def file_base_name(self) -> str:
        return self.export_file_name or self.business_type

    @abstractmethod
    def query_export_data(self, params: Any) -> Optional[Sequence[Any]]:
        ...


class TemplateProvider(BusinessProvider):
    template_file_name: Optional[str] = None

    def file_base_name(self) -> str:
        return self.template_file_name or self.business_type


class RowProcessor(BusinessProvider, ABC):
    @abstractmethod
    def validate_row(self, record: Any, row_index: int) -> Optional[str]:
        """Return an error message for an invalid row, or None/"" when it passes."""

    @abstractmethod
    def process_valid_rows(self, records: List[Any]) -> None:
        """Persist the full batch of valid rows in one call."""
