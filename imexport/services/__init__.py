from .exporter import ExportService
from .importer import ImportService, build_error_rows, classify_rows
from .naming import build_error_headers
from .observer import LoggingObserver, PipelineObserver
from .pipeline import Pipeline
from .providers import BusinessProvider, ExportProvider, RowProcessor, TemplateProvider
from .tasks import TaskManager
from .templates import TemplateService

__all__ = [
    "ExportService", "ImportService", "TemplateService", "TaskManager", "Pipeline",
    "BusinessProvider", "ExportProvider", "RowProcessor", "TemplateProvider",
    "PipelineObserver", "LoggingObserver",
    "build_error_headers", "build_error_rows", "classify_rows",
]
