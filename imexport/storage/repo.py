import itertools
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import redis

from .schema import Task, TaskStatus
from ..config import settings
from ..exceptions import TaskNotFoundError, TaskStateError


class TaskRepo:
    """Persistence contract for task records."""

    def insert(self, task: Task) -> int:
        raise NotImplementedError

    def update_by_id(self, task_id: int, fields: Dict[str, Any],
                     expected_status: Optional[TaskStatus] = None) -> None:
        """Partial update by non-null fields, optionally guarded on the current status."""
        raise NotImplementedError

    def get(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def list(self, business_type: Optional[str] = None, status: Optional[TaskStatus] = None,
             limit: int = 100) -> List[Task]:
        raise NotImplementedError


def _non_null(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None and k != "id"}


class InMemoryTaskRepo(TaskRepo):
    def __init__(self):
        self._tasks: Dict[int, Task] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, task: Task) -> int:
        with self._lock:
            task_id = next(self._ids)
            self._tasks[task_id] = task.model_copy(update={"id": task_id})
            return task_id

    def update_by_id(self, task_id: int, fields: Dict[str, Any],
                     expected_status: Optional[TaskStatus] = None) -> None:
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise TaskNotFoundError(f"Unknown task: {task_id}")
            if expected_status is not None and current.status != expected_status:
                raise TaskStateError(
                    f"Task {task_id} is {current.status.value}, expected {expected_status.value}")
            self._tasks[task_id] = current.model_copy(update=_non_null(fields))

    def get(self, task_id: int) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            return task.model_copy() if task else None

    def list(self, business_type: Optional[str] = None, status: Optional[TaskStatus] = None,
             limit: int = 100) -> List[Task]:
        with self._lock:
            tasks = sorted(self._tasks.values(), key=lambda t: t.id, reverse=True)
        out = []
        for t in tasks:
            if business_type and t.business_type != business_type:
                continue
            if status and t.status != status:
                continue
            out.append(t.model_copy())
            if len(out) >= limit:
                break
        return out


def _encode(value: Any) -> str:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class RedisTaskRepo(TaskRepo):
    def __init__(self, client: Optional[redis.Redis] = None, prefix: Optional[str] = None):
        self.r = client or redis.from_url(settings.redis_url, decode_responses=True)
        self.prefix = prefix or settings.storage_key_prefix

    def _key(self, task_id: int) -> str:
        return f"{self.prefix}:task:{task_id}"

    @property
    def _seq_key(self) -> str:
        return f"{self.prefix}:task:seq"

    @property
    def _index_key(self) -> str:
        return f"{self.prefix}:tasks"

    def insert(self, task: Task) -> int:
        task_id = int(self.r.incr(self._seq_key))
        mapping = {k: _encode(v) for k, v in _non_null(task.model_dump()).items()}
        mapping["id"] = str(task_id)
        pipe = self.r.pipeline()
        pipe.hset(self._key(task_id), mapping=mapping)
        pipe.zadd(self._index_key, {str(task_id): task_id})
        pipe.execute()
        return task_id

    def update_by_id(self, task_id: int, fields: Dict[str, Any],
                     expected_status: Optional[TaskStatus] = None) -> None:
        key = self._key(task_id)
        mapping = {k: _encode(v) for k, v in _non_null(fields).items()}
        with self.r.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(key)
                    current = pipe.hget(key, "status")
                    if current is None:
                        raise TaskNotFoundError(f"Unknown task: {task_id}")
                    if expected_status is not None and current != expected_status.value:
                        raise TaskStateError(
                            f"Task {task_id} is {current}, expected {expected_status.value}")
                    pipe.multi()
                    pipe.hset(key, mapping=mapping)
                    pipe.execute()
                    return
                except redis.WatchError:
                    continue

    def get(self, task_id: int) -> Optional[Task]:
        data = self.r.hgetall(self._key(task_id))
        if not data:
            return None
        return Task.model_validate({k: v for k, v in data.items() if v != ""})

    def list(self, business_type: Optional[str] = None, status: Optional[TaskStatus] = None,
             limit: int = 100) -> List[Task]:
        out = []
        for raw_id in self.r.zrevrange(self._index_key, 0, -1):
            task = self.get(int(raw_id))
            if task is None:
                continue
            if business_type and task.business_type != business_type:
                continue
            if status and task.status != status:
                continue
            out.append(task)
            if len(out) >= limit:
                break
        return out
