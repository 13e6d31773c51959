import os
from typing import Any, Dict

from celery import Celery

celery_app = Celery(
    "imexport",
    broker=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    backend=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)


@celery_app.on_after_configure.connect
def _setup_logging(sender, **kwargs):
    from imexport.config import settings
    from imexport.logging_config import configure_logging
    configure_logging(settings.log_level, settings.log_format)


@celery_app.task(name="run_export")
def run_export(payload: dict) -> dict:
    import imexport.business  # noqa: F401  registers business wiring
    from imexport.dependencies import get_pipeline
    file_ref = get_pipeline().run_export_task(payload["task_id"], payload["file_format"], payload.get("params"))
    return {"task_id": payload["task_id"], "file_ref": file_ref}


@celery_app.task(name="run_import")
def run_import(payload: dict) -> dict:
    import imexport.business  # noqa: F401  registers business wiring
    from imexport.dependencies import get_pipeline
    result = get_pipeline().run_import_task(payload["task_id"], payload["file_format"])
    return result.model_dump()


_TASKS = {"export": run_export, "import": run_import}


def dispatch(kind: str, payload: Dict[str, Any]) -> None:
    _TASKS[kind].delay(payload)
