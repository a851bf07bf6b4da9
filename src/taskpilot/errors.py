# src/taskpilot/errors.py

"""
Typed errors raised by the task core and the store.

Core functions raise these and never print or exit. The CLI is the only place
that catches TaskpilotError and turns it into a message + process exit code.
"""

from __future__ import annotations

from typing import Any


class TaskpilotError(Exception):
    """Base exception for all taskpilot errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        exit_code: int = 1,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.exit_code = exit_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(TaskpilotError):
    """Task or subtask id does not resolve."""

    def __init__(self, resource: str, resource_id: object, message: str | None = None) -> None:
        super().__init__(
            message=message or f"{resource} with ID {resource_id} not found",
            error_code="not_found",
        )
        self.resource = resource
        self.resource_id = resource_id


class InvalidArgumentError(TaskpilotError):
    """Bad status/priority value, malformed id token, etc."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            error_code="invalid_argument",
            exit_code=2,
            details=details,
        )


class SelfDependencyError(InvalidArgumentError):
    """Task cannot depend on itself."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} cannot depend on itself")
        self.error_code = "self_dependency"
        self.task_id = task_id


class DuplicateDependencyError(InvalidArgumentError):
    """Dependency already exists."""

    def __init__(self, task_id: int, depends_on: int) -> None:
        super().__init__(f"Task {task_id} already depends on task {depends_on}")
        self.error_code = "duplicate_dependency"
        self.task_id = task_id
        self.depends_on = depends_on


class CycleDetectedError(TaskpilotError):
    """Adding a dependency would create a cycle."""

    def __init__(self, task_id: int, depends_on: int, path: list[int] | None = None) -> None:
        super().__init__(
            message=f"Making task {task_id} depend on task {depends_on} would create a cycle",
            error_code="cycle_detected",
            details={"path": list(path or [])},
        )
        self.task_id = task_id
        self.depends_on = depends_on


class StoreError(TaskpilotError):
    """Reading or writing the tasks file failed."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message=message, error_code="store_error")
        self.path = path


class StoreNotFoundError(NotFoundError):
    """The tasks file does not exist yet."""

    def __init__(self, path: object) -> None:
        super().__init__(
            "Tasks file",
            path,
            message=f"Tasks file not found: {path}. Run 'taskpilot init' first.",
        )
        self.error_code = "store_not_found"
        self.path = path


class StoreFormatError(StoreError):
    """The tasks file is not valid JSON or violates the schema."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message, path=path)
        self.error_code = "store_format"


class LLMError(TaskpilotError):
    """Subtask generation through the LLM failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_code="llm_error")
