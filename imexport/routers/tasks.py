import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import settings
from ..dependencies import get_pipeline
from ..exceptions import CodecError, PipelineError, TaskNotFoundError, UnknownBusinessTypeError
from ..models import ExportRequest, ImportRequest, TaskListResponse, TaskResponse, TemplateResponse
from ..services import registry
from ..services.pipeline import Pipeline
from ..storage.schema import Task, TaskStatus

router = APIRouter()


@router.post("/exports", response_model=TaskResponse)
def new_export(payload: ExportRequest, pipeline: Pipeline = Depends(get_pipeline)):
    try:
        task_id = pipeline.submit_export(payload.business_type, payload.params, payload.created_by,
                                         payload.file_format)
    except UnknownBusinessTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CodecError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PipelineError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return TaskResponse(task_id=task_id)


@router.post("/imports", response_model=TaskResponse)
def new_import(payload: ImportRequest, pipeline: Pipeline = Depends(get_pipeline)):
    try:
        task_id = pipeline.submit_import(payload.business_type, payload.source_file_ref, payload.created_by,
                                         payload.file_format)
    except UnknownBusinessTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CodecError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PipelineError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return TaskResponse(task_id=task_id)


@router.get("/tasks/{task_id}", response_model=Task)
def get_task(task_id: int, longpoll: bool = False, pipeline: Pipeline = Depends(get_pipeline)):
    try:
        task = pipeline.get_task(task_id)
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Unknown task")

    deadline = time.time() + settings.max_status_longpoll_seconds
    while longpoll and not task.status.terminal and time.time() < deadline:
        time.sleep(settings.status_poll_interval_seconds)
        task = pipeline.get_task(task_id)
    return task


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(business_type: Optional[str] = None, status: Optional[TaskStatus] = None,
               limit: int = Query(100, ge=1, le=1000), pipeline: Pipeline = Depends(get_pipeline)):
    return TaskListResponse(tasks=pipeline.list_tasks(business_type=business_type, status=status, limit=limit))


@router.get("/templates/{business_type}", response_model=TemplateResponse)
def get_template(business_type: str, file_format: Optional[str] = None,
                 pipeline: Pipeline = Depends(get_pipeline)):
    try:
        provider = registry.get_template_provider(business_type)
        url = pipeline.generate_template_download_url(provider, file_format)
    except UnknownBusinessTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CodecError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TemplateResponse(business_type=business_type, url=url)
