from datetime import datetime, timedelta, timezone

import pytest

from conftest import BrokenObserver, Interrupt
from imexport.exceptions import PipelineError, TaskNotFoundError, TaskStateError
from imexport.services.observer import PipelineObserver
from imexport.services.tasks import TaskManager
from imexport.storage.repo import InMemoryTaskRepo
from imexport.storage.schema import TaskKind, TaskStatus


class Clock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class RecordingObserver(PipelineObserver):
    def __init__(self):
        self.events = []

    def task_created(self, task):
        self.events.append(("created", task.id))

    def task_finalized(self, task_id, status, error_message=None):
        self.events.append(("finalized", task_id, status))


@pytest.fixture
def manager():
    return TaskManager(InMemoryTaskRepo(), RecordingObserver(), clock=Clock())


def test_create_task_starts_processing(manager):
    task = manager.create_task(TaskKind.IMPORT, "items", "alice", source_file_ref="oss://b/1/f.csv")

    stored = manager.get(task.id)
    assert stored.status == TaskStatus.PROCESSING
    assert stored.created_at == stored.updated_at
    assert stored.source_file_ref == "oss://b/1/f.csv"
    assert manager.observer.events == [("created", task.id)]


def test_ids_are_ordered(manager):
    ids = [manager.create_task(TaskKind.EXPORT, "items").id for _ in range(3)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_finalize_success_sets_fields(manager):
    task = manager.create_task(TaskKind.EXPORT, "items")
    manager.finalize_success(task.id, file_ref="oss://b/2/x.csv", total_rows=4)

    stored = manager.get(task.id)
    assert stored.status == TaskStatus.SUCCESS
    assert stored.file_ref == "oss://b/2/x.csv"
    assert stored.total_rows == 4
    assert stored.updated_at > stored.created_at


def test_terminal_task_cannot_be_finalized_again(manager):
    task = manager.create_task(TaskKind.EXPORT, "items")
    manager.finalize_failure(task.id, "boom")

    with pytest.raises(TaskStateError):
        manager.finalize_success(task.id, total_rows=1)
    with pytest.raises(TaskStateError):
        manager.finalize_failure(task.id, "again")
    stored = manager.get(task.id)
    assert stored.status == TaskStatus.FAILED
    assert stored.error_message == "boom"


def test_run_finalizes_success_once(manager):
    task = manager.create_task(TaskKind.EXPORT, "items")

    fields = manager.run(task, lambda: {"file_ref": "ref", "total_rows": 0})

    assert fields["file_ref"] == "ref"
    finalized = [e for e in manager.observer.events if e[0] == "finalized"]
    assert finalized == [("finalized", task.id, TaskStatus.SUCCESS)]


def test_run_records_failure_and_reraises(manager):
    task = manager.create_task(TaskKind.IMPORT, "items")

    def body():
        raise KeyError("missing")

    with pytest.raises(PipelineError) as exc_info:
        manager.run(task, body)

    assert exc_info.value.task_id == task.id
    assert isinstance(exc_info.value.__cause__, KeyError)
    stored = manager.get(task.id)
    assert stored.status == TaskStatus.FAILED
    assert stored.error_message == "'missing'"
    finalized = [e for e in manager.observer.events if e[0] == "finalized"]
    assert finalized == [("finalized", task.id, TaskStatus.FAILED)]


def test_run_uses_exception_type_for_blank_message(manager):
    task = manager.create_task(TaskKind.IMPORT, "items")

    def body():
        raise RuntimeError()

    with pytest.raises(PipelineError):
        manager.run(task, body)
    assert manager.get(task.id).error_message == "RuntimeError"


def test_unknown_task(manager):
    with pytest.raises(TaskNotFoundError):
        manager.get(999)
    with pytest.raises(TaskNotFoundError):
        manager.finalize_success(999)


def test_terminal_statuses():
    assert TaskStatus.SUCCESS.terminal and TaskStatus.FAILED.terminal
    assert not TaskStatus.PENDING.terminal and not TaskStatus.PROCESSING.terminal


def test_run_records_interrupt_and_lets_it_propagate(manager):
    task = manager.create_task(TaskKind.EXPORT, "items")

    def body():
        raise Interrupt()

    with pytest.raises(Interrupt):
        manager.run(task, body)

    stored = manager.get(task.id)
    assert stored.status == TaskStatus.FAILED
    assert stored.error_message == "Interrupted: Interrupt"


def test_failing_observer_does_not_block_finalization():
    manager = TaskManager(InMemoryTaskRepo(), BrokenObserver(), clock=Clock())

    task = manager.create_task(TaskKind.EXPORT, "items")
    manager.run(task, lambda: {"total_rows": 0})

    assert manager.get(task.id).status == TaskStatus.SUCCESS
    assert manager.repo.list(status=TaskStatus.PROCESSING) == []
