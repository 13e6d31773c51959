from typing import Any, Callable, Dict, List, Optional

import orjson

from ..config import settings
from ..exceptions import ImExportError, PipelineError, TaskStateError
from ..formats import Codec, get_codec
from ..logging_config import get_logger
from ..models import ImportResult
from ..storage.blobs import BlobStorage
from ..storage.repo import TaskRepo
from ..storage.schema import Task, TaskStatus
from . import registry
from .exporter import ExportService
from .importer import ImportService
from .observer import LoggingObserver, PipelineObserver
from .providers import ExportProvider, RowProcessor, TemplateProvider
from .tasks import TaskManager
from .templates import TemplateService

logger = get_logger(__name__)

# (kind, payload) -> None; hands a run to a worker
Dispatch = Callable[[str, Dict[str, Any]], None]


class Pipeline:
    """Entry point for export, import and template operations over one codec per call."""

    def __init__(self, repo: TaskRepo, storage: BlobStorage, observer: Optional[PipelineObserver] = None,
                 dispatch: Optional[Dispatch] = None, default_format: Optional[str] = None):
        self.repo = repo
        self.storage = storage
        self.tasks = TaskManager(repo, observer or LoggingObserver())
        self.exporter = ExportService(self.tasks, storage)
        self.importer = ImportService(self.tasks, storage)
        self.templates = TemplateService(storage)
        self.dispatch = dispatch
        self.default_format = default_format or settings.default_file_format

    def codec(self, file_format: Optional[str] = None) -> Codec:
        return get_codec(file_format or self.default_format)

    # synchronous runs

    def export(self, provider: ExportProvider, params: Any = None, created_by: Optional[str] = None,
               file_format: Optional[str] = None) -> str:
        return self.exporter.export(provider, params, created_by, self.codec(file_format))

    def import_file(self, source_file_ref: str, processor: RowProcessor, created_by: Optional[str] = None,
                    file_format: Optional[str] = None) -> ImportResult:
        return self.importer.import_file(source_file_ref, processor, created_by, self.codec(file_format))

    def generate_template(self, provider: TemplateProvider, file_format: Optional[str] = None) -> str:
        return self.templates.generate_template(provider, self.codec(file_format))

    def generate_template_download_url(self, provider: TemplateProvider, file_format: Optional[str] = None,
                                       ttl_seconds: Optional[int] = None) -> str:
        return self.templates.generate_template_download_url(provider, self.codec(file_format), ttl_seconds)

    # asynchronous runs: the task is created here, the rest runs on a worker

    def submit_export(self, business_type: str, params: Any = None, created_by: Optional[str] = None,
                      file_format: Optional[str] = None) -> int:
        """Create an export task and hand it to a worker; returns the task id.

        The worker runs the export provider registered for ``business_type``.
        """
        provider = registry.get_export_provider(business_type)
        file_format = self.codec(file_format).name
        task = self.exporter.start(provider, params, created_by)
        payload = {
            "task_id": task.id,
            "file_format": file_format,
            "params": orjson.loads(task.query_params) if task.query_params else None,
        }
        self._hand_off(task, "export", payload)
        return task.id

    def submit_import(self, business_type: str, source_file_ref: str, created_by: Optional[str] = None,
                      file_format: Optional[str] = None) -> int:
        processor = registry.get_import_processor(business_type)
        file_format = self.codec(file_format).name
        task = self.importer.start(source_file_ref, processor, created_by)
        self._hand_off(task, "import", {"task_id": task.id, "file_format": file_format})
        return task.id

    def run_payload(self, kind: str, payload: Dict[str, Any]):
        if kind == "export":
            return self.run_export_task(**payload)
        if kind == "import":
            return self.run_import_task(**payload)
        raise ValueError(f"Unknown task kind: {kind}")

    def run_export_task(self, task_id: int, file_format: str, params: Any = None) -> str:
        task = self._claim(task_id)
        provider, codec = self._resolve(task, registry.get_export_provider, file_format)
        return self.exporter.execute(task, provider, params, codec)

    def run_import_task(self, task_id: int, file_format: str) -> ImportResult:
        task = self._claim(task_id)
        processor, codec = self._resolve(task, registry.get_import_processor, file_format)
        return self.importer.execute(task, processor, codec)

    # task queries

    def get_task(self, task_id: int) -> Task:
        return self.tasks.get(task_id)

    def list_tasks(self, business_type: Optional[str] = None, status: Optional[TaskStatus] = None,
                   limit: int = 100) -> List[Task]:
        return self.repo.list(business_type=business_type, status=status, limit=limit)

    def _hand_off(self, task: Task, kind: str, payload: Dict[str, Any]) -> None:
        if self.dispatch is None:
            self._fail(task, "No worker dispatch configured")
        try:
            self.dispatch(kind, payload)
        except Exception as exc:
            # an eagerly executed worker may have finalized the task already
            if self.tasks.get(task.id).status != TaskStatus.PROCESSING:
                raise
            self._fail(task, f"Dispatch failed: {exc}", exc)
        logger.info("task_submitted", kind=kind, task_id=task.id)

    def _claim(self, task_id: int) -> Task:
        task = self.tasks.get(task_id)
        if task.status != TaskStatus.PROCESSING:
            raise TaskStateError(f"Task {task_id} is already {task.status.value}")
        return task

    def _resolve(self, task: Task, lookup, file_format: str):
        try:
            return lookup(task.business_type), get_codec(file_format)
        except ImExportError as exc:
            self._fail(task, str(exc), exc)

    def _fail(self, task: Task, message: str, cause: Optional[BaseException] = None):
        self.tasks.finalize_failure(task.id, message)
        raise PipelineError(f"{task.kind.value.lower()} task {task.id} failed: {message}",
                            task_id=task.id) from cause
