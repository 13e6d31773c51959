from typing import Any, List, Optional, Sequence, Tuple

from ..formats import Codec, RecordSchema
from ..logging_config import get_logger
from ..models import ImportResult, RowError
from ..storage.blobs import BlobStorage
from ..storage.schema import Task, TaskKind
from .naming import build_error_headers, error_file_name
from .observer import PipelineObserver, notify
from .providers import RowProcessor
from .tasks import TaskManager

logger = get_logger(__name__)

IMPORT_SUCCEEDED = "Import succeeded"
IMPORT_COMPLETED_WITH_ERRORS = "Import completed with error rows"


def classify_rows(records: Sequence[Any], processor: RowProcessor,
                  observer: Optional[PipelineObserver] = None,
                  task_id: Optional[int] = None) -> Tuple[List[Any], List[RowError]]:
    """Split records into valid rows and row errors, both in file order.

    Row indexes are 1-based over data rows. Every row is validated; one row's
    outcome never affects another's.
    """
    valid: List[Any] = []
    errors: List[RowError] = []
    for row_index, record in enumerate(records, start=1):
        message = processor.validate_row(record, row_index)
        if message:
            errors.append(RowError(row_index=row_index, message=message, record=record))
        else:
            valid.append(record)
        if observer is not None:
            notify(observer, "row_classified", task_id, row_index, message or None)
    return valid, errors


def build_error_rows(errors: Sequence[RowError], schema: RecordSchema) -> List[List[Any]]:
    return [[e.row_index, e.message] + schema.to_row(e.record) for e in errors]


class ImportService:
    def __init__(self, tasks: TaskManager, storage: BlobStorage):
        self.tasks = tasks
        self.storage = storage

    def import_file(self, source_file_ref: str, processor: RowProcessor, created_by: Optional[str],
                    codec: Codec) -> ImportResult:
        task = self.start(source_file_ref, processor, created_by)
        return self.execute(task, processor, codec)

    def start(self, source_file_ref: str, processor: RowProcessor, created_by: Optional[str]) -> Task:
        return self.tasks.create_task(TaskKind.IMPORT, processor.business_type, created_by,
                                      source_file_ref=source_file_ref)

    def execute(self, task: Task, processor: RowProcessor, codec: Codec) -> ImportResult:
        def body():
            data = self.storage.get(task.source_file_ref)
            records = codec.decode(data, processor.schema, processor.headers())
            valid, errors = classify_rows(records, processor, self.tasks.observer, task.id)
            logger.info("rows_classified", task_id=task.id, total=len(records),
                        valid=len(valid), errors=len(errors))

            if valid:
                processor.process_valid_rows(valid)

            error_file_ref = None
            if errors:
                error_file_ref = self._upload_error_file(errors, processor, codec)

            return {
                "total_rows": len(valid) + len(errors),
                "success_rows": len(valid),
                "error_rows": len(errors),
                "error_file_ref": error_file_ref,
            }

        fields = self.tasks.run(task, body)
        error_rows = fields["error_rows"]
        return ImportResult(
            task_id=task.id,
            total_rows=fields["total_rows"],
            success_rows=fields["success_rows"],
            error_rows=error_rows,
            error_file_ref=fields["error_file_ref"],
            success=error_rows == 0,
            message=IMPORT_SUCCEEDED if error_rows == 0 else IMPORT_COMPLETED_WITH_ERRORS,
        )

    def _upload_error_file(self, errors: List[RowError], processor: RowProcessor, codec: Codec) -> str:
        headers = build_error_headers(processor.schema.check_headers(processor.headers()))
        rows = build_error_rows(errors, processor.schema)
        data = codec.encode_rows(rows, headers, sheet_name="errors")
        name = error_file_name(processor.business_type, codec.extension)
        ref = self.storage.put(data, name, codec.content_type)
        logger.info("error_file_uploaded", business_type=processor.business_type, error_file_ref=ref)
        return ref
