from typing import Any, Optional

import orjson
from pydantic import BaseModel

from ..formats import Codec
from ..logging_config import get_logger
from ..storage.blobs import BlobStorage
from ..storage.schema import Task, TaskKind
from .naming import export_file_name
from .providers import ExportProvider
from .tasks import TaskManager

logger = get_logger(__name__)


def serialize_params(params: Any) -> Optional[str]:
    if params is None:
        return None
    if isinstance(params, BaseModel):
        params = params.model_dump(mode="json")
    return orjson.dumps(params, default=str, option=orjson.OPT_SORT_KEYS).decode()


class ExportService:
    def __init__(self, tasks: TaskManager, storage: BlobStorage):
        self.tasks = tasks
        self.storage = storage

    def export(self, provider: ExportProvider, params: Any, created_by: Optional[str], codec: Codec) -> str:
        task = self.start(provider, params, created_by)
        return self.execute(task, provider, params, codec)

    def start(self, provider: ExportProvider, params: Any, created_by: Optional[str]) -> Task:
        return self.tasks.create_task(TaskKind.EXPORT, provider.business_type, created_by,
                                      query_params=serialize_params(params))

    def execute(self, task: Task, provider: ExportProvider, params: Any, codec: Codec) -> str:
        def body():
            records = list(provider.query_export_data(params) or [])
            if not records:
                logger.warning("export_data_empty", business_type=provider.business_type, task_id=task.id)

            data = codec.encode(records, provider.schema, provider.headers(), sheet_name=provider.business_type)
            name = export_file_name(provider.file_base_name(), codec.extension)
            file_ref = self.storage.put(data, name, codec.content_type)
            logger.info("export_uploaded", task_id=task.id, file_ref=file_ref, rows=len(records))
            return {"file_ref": file_ref, "total_rows": len(records)}

        return self.tasks.run(task, body)["file_ref"]
