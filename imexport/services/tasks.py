from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from ..exceptions import PipelineError, TaskNotFoundError
from ..logging_config import get_logger
from ..storage.repo import TaskRepo
from ..storage.schema import Task, TaskKind, TaskStatus
from .observer import PipelineObserver, notify

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskManager:
    """Owns the task state machine: PROCESSING on create, then exactly one of SUCCESS/FAILED."""

    def __init__(self, repo: TaskRepo, observer: Optional[PipelineObserver] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.observer = observer or PipelineObserver()
        self.clock = clock

    def create_task(self, kind: TaskKind, business_type: str, created_by: Optional[str] = None,
                    **context: Any) -> Task:
        now = self.clock()
        task = Task(kind=kind, business_type=business_type, status=TaskStatus.PROCESSING,
                    created_by=created_by, created_at=now, updated_at=now, **context)
        task.id = self.repo.insert(task)
        notify(self.observer, "task_created", task)
        return task

    def finalize_success(self, task_id: int, **fields: Any) -> None:
        fields.update(status=TaskStatus.SUCCESS, updated_at=self.clock())
        self.repo.update_by_id(task_id, fields, expected_status=TaskStatus.PROCESSING)
        notify(self.observer, "task_finalized", task_id, TaskStatus.SUCCESS)

    def finalize_failure(self, task_id: int, error_message: str) -> None:
        fields = {"status": TaskStatus.FAILED, "error_message": error_message, "updated_at": self.clock()}
        self.repo.update_by_id(task_id, fields, expected_status=TaskStatus.PROCESSING)
        notify(self.observer, "task_finalized", task_id, TaskStatus.FAILED, error_message)

    def get(self, task_id: int) -> Task:
        task = self.repo.get(task_id)
        if task is None:
            raise TaskNotFoundError(f"Unknown task: {task_id}")
        return task

    def run(self, task: Task, body: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        """Run ``body`` and finalize ``task`` exactly once with its outcome.

        ``body`` returns the summary fields recorded on success. An exception it
        raises is recorded as FAILED and re-raised as PipelineError. Interrupts
        (SystemExit, KeyboardInterrupt, worker timeouts) are recorded as FAILED
        and propagate unchanged.
        """
        try:
            fields = body()
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.exception("task_run_failed", kind=task.kind.value, task_id=task.id)
            self.finalize_failure(task.id, message)
            raise PipelineError(f"{task.kind.value.lower()} task {task.id} failed: {message}",
                                task_id=task.id) from exc
        except BaseException as exc:
            logger.warning("task_run_interrupted", kind=task.kind.value, task_id=task.id,
                           interrupt=type(exc).__name__)
            self.finalize_failure(task.id, f"Interrupted: {type(exc).__name__}")
            raise
        self.finalize_success(task.id, **fields)
        return fields
