import threading
from typing import Any, Dict, Optional

from .config import Settings, settings
from .exceptions import PipelineError
from .logging_config import get_logger
from .services.pipeline import Dispatch, Pipeline
from .storage.blobs import BlobStorage, InMemoryBlobStorage, RedisBlobStorage
from .storage.repo import InMemoryTaskRepo, RedisTaskRepo, TaskRepo

logger = get_logger(__name__)

_lock = threading.Lock()
_pipeline: Optional[Pipeline] = None


def build_task_repo(cfg: Settings = settings) -> TaskRepo:
    if cfg.task_backend == "redis":
        return RedisTaskRepo()
    if cfg.task_backend == "memory":
        return InMemoryTaskRepo()
    raise ValueError(f"Unknown task backend: {cfg.task_backend}")


def build_blob_storage(cfg: Settings = settings) -> BlobStorage:
    if cfg.storage_backend == "redis":
        return RedisBlobStorage()
    if cfg.storage_backend == "memory":
        return InMemoryBlobStorage()
    raise ValueError(f"Unknown storage backend: {cfg.storage_backend}")


def celery_dispatch() -> Dispatch:
    from worker.celery_app import dispatch
    return dispatch


def inline_dispatch(pipeline: Pipeline) -> Dispatch:
    """Run submitted tasks in this process, for backends a worker process cannot see."""

    def dispatch(kind: str, payload: Dict[str, Any]) -> None:
        try:
            pipeline.run_payload(kind, payload)
        except PipelineError as exc:
            # already recorded as FAILED; callers see it by polling the task
            logger.warning("inline_task_failed", kind=kind, task_id=exc.task_id, error=str(exc))

    return dispatch


def build_pipeline(cfg: Settings = settings) -> Pipeline:
    pipeline = Pipeline(build_task_repo(cfg), build_blob_storage(cfg), default_format=cfg.default_file_format)
    if cfg.task_backend == "memory" or cfg.storage_backend == "memory":
        pipeline.dispatch = inline_dispatch(pipeline)
    else:
        pipeline.dispatch = celery_dispatch()
    return pipeline


def get_pipeline() -> Pipeline:
    global _pipeline
    with _lock:
        if _pipeline is None:
            _pipeline = build_pipeline()
        return _pipeline


def set_pipeline(pipeline: Optional[Pipeline]) -> None:
    global _pipeline
    with _lock:
        _pipeline = pipeline
