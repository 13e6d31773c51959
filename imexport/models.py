from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .storage.schema import Task


class RowError(BaseModel):
    row_index: int
    message: str
    record: Any = None


class ImportResult(BaseModel):
    task_id: Optional[int] = None
    total_rows: int = 0
    success_rows: int = 0
    error_rows: int = 0
    error_file_ref: Optional[str] = None
    success: bool = True
    message: str = ""


class ExportRequest(BaseModel):
    business_type: str
    params: Dict[str, Any] = Field(default_factory=dict)
    created_by: Optional[str] = None
    file_format: Optional[str] = None


class ImportRequest(BaseModel):
    business_type: str
    source_file_ref: str
    created_by: Optional[str] = None
    file_format: Optional[str] = None


class TaskResponse(BaseModel):
    task_id: int


class TaskListResponse(BaseModel):
    tasks: List[Task]


class TemplateResponse(BaseModel):
    business_type: str
    url: str
