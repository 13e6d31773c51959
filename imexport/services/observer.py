from typing import Optional

from ..logging_config import get_logger
from ..storage.schema import Task, TaskStatus

logger = get_logger(__name__)


class PipelineObserver:
    """Hooks called at the lifecycle points of a pipeline run. Defaults do nothing."""

    def task_created(self, task: Task) -> None:
        pass

    def row_classified(self, task_id: int, row_index: int, error: Optional[str]) -> None:
        pass

    def task_finalized(self, task_id: int, status: TaskStatus, error_message: Optional[str] = None) -> None:
        pass


def notify(observer: PipelineObserver, hook: str, *args) -> None:
    """Call one observer hook. A failing observer is logged and never stops the run."""
    try:
        getattr(observer, hook)(*args)
    except Exception:
        logger.exception("observer_failed", hook=hook, observer=type(observer).__name__)


class LoggingObserver(PipelineObserver):
    def task_created(self, task: Task) -> None:
        logger.info("task_created", kind=task.kind.value, task_id=task.id, business_type=task.business_type)

    def row_classified(self, task_id: int, row_index: int, error: Optional[str]) -> None:
        if error:
            logger.debug("row_rejected", task_id=task_id, row=row_index, error=error)

    def task_finalized(self, task_id: int, status: TaskStatus, error_message: Optional[str] = None) -> None:
        if status == TaskStatus.FAILED:
            logger.error("task_failed", task_id=task_id, error=error_message)
        else:
            logger.info("task_finished", task_id=task_id, status=status.value)
