from .blobs import BlobStorage, InMemoryBlobStorage, RedisBlobStorage
from .repo import InMemoryTaskRepo, RedisTaskRepo, TaskRepo
from .schema import Task, TaskKind, TaskStatus

__all__ = [
    "BlobStorage", "InMemoryBlobStorage", "RedisBlobStorage",
    "InMemoryTaskRepo", "RedisTaskRepo", "TaskRepo",
    "Task", "TaskKind", "TaskStatus",
]
