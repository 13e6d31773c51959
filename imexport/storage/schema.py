from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (TaskStatus.SUCCESS, TaskStatus.FAILED)


class TaskKind(str, Enum):
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"


class Task(BaseModel):
    id: Optional[int] = None
    kind: TaskKind
    business_type: str
    status: TaskStatus = TaskStatus.PENDING
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # export
    query_params: Optional[str] = None  # orjson string
    file_ref: Optional[str] = None
    # import
    source_file_ref: Optional[str] = None
    total_rows: Optional[int] = None
    success_rows: Optional[int] = None
    error_rows: Optional[int] = None
    error_file_ref: Optional[str] = None
    error_message: Optional[str] = None
