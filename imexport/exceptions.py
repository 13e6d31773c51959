"""Exceptions raised by the import/export pipeline."""


class ImExportError(Exception):
    """Base exception for imexport."""


class PipelineError(ImExportError):
    """Raised when a tracked pipeline run could not complete."""

    def __init__(self, message: str, task_id: int | None = None):
        super().__init__(message)
        self.task_id = task_id


class TaskNotFoundError(ImExportError):
    """Raised when a task id is unknown to the task store."""


class TaskStateError(ImExportError):
    """Raised when a task is finalized outside of PROCESSING."""


class CodecError(ImExportError):
    """Raised when a file cannot be encoded or decoded."""


class StorageError(ImExportError):
    """Raised when a blob cannot be stored, fetched or signed."""


class UnknownBusinessTypeError(ImExportError):
    """Raised when no wiring is registered for a business type."""
