import threading
from typing import Dict

from ..exceptions import UnknownBusinessTypeError
from .providers import ExportProvider, RowProcessor, TemplateProvider

_lock = threading.Lock()
_exporters: Dict[str, ExportProvider] = {}
_processors: Dict[str, RowProcessor] = {}
_templates: Dict[str, TemplateProvider] = {}


def _register(table, item):
    if not item.business_type:
        raise ValueError(f"{type(item).__name__} has no business_type")
    with _lock:
        table[item.business_type] = item
    return item


def _lookup(table, business_type: str, role: str):
    with _lock:
        item = table.get(business_type)
    if item is None:
        raise UnknownBusinessTypeError(f"No {role} registered for business type '{business_type}'")
    return item


def register_export_provider(provider: ExportProvider) -> ExportProvider:
    return _register(_exporters, provider)


def register_import_processor(processor: RowProcessor) -> RowProcessor:
    return _register(_processors, processor)


def register_template_provider(provider: TemplateProvider) -> TemplateProvider:
    return _register(_templates, provider)


def get_export_provider(business_type: str) -> ExportProvider:
    return _lookup(_exporters, business_type, "export provider")


def get_import_processor(business_type: str) -> RowProcessor:
    return _lookup(_processors, business_type, "import processor")


def get_template_provider(business_type: str) -> TemplateProvider:
    return _lookup(_templates, business_type, "template provider")
