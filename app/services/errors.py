"""Service-layer exceptions, translated to HTTP responses in app.main."""
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for service errors"""
    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__("NOT_FOUND", f"{resource} {resource_id} not found", {"resource": resource, "id": resource_id})


class ValidationFailed(ServiceError):
    status_code = 422

    def __init__(self, message: str, errors: Optional[list] = None, code: str = "VALIDATION_FAILED"):
        super().__init__(code, message, {"errors": errors or [message]})


class CompletionConflict(ServiceError):
    """The due-date pointer moved between reading the task and advancing it."""
    status_code = 409

    def __init__(self, task_id: int, expected_due_date):
        super().__init__(
            "COMPLETION_CONFLICT",
            f"Checklist {task_id} was updated concurrently; reload and retry",
            {"task_id": task_id, "expected_due_date": str(expected_due_date)}
        )


class DuplicateCompletion(ServiceError):
    status_code = 409

    def __init__(self, task_id: int, instance_date):
        super().__init__(
            "DUPLICATE_COMPLETION",
            f"Instance {instance_date} of checklist {task_id} is already completed",
            {"task_id": task_id, "instance_date": str(instance_date)}
        )


class InvalidTransition(ServiceError):
    """A status change the workflow does not allow from the current status."""
    status_code = 409

    def __init__(self, resource: str, resource_id: int, current: str, requested: str):
        super().__init__(
            "INVALID_TRANSITION",
            f"{resource} {resource_id} cannot move from '{current}' to '{requested}'",
            {"resource": resource, "id": resource_id, "current": current, "requested": requested}
        )
