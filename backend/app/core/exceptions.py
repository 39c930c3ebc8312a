from typing import Any


class AppError(Exception):
    """Base class for errors returned to API callers as ``{"message", "details"}``."""

    def __init__(self, message: str, status_code: int = 500, details: dict[str, Any] | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class SchedulerError(AppError):
    """Raised when a suggestion request cannot be evaluated as given."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested interventionist is not part of the submitted pool."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConfigurationError(AppError):
    """Raised when the suggestion defaults in the environment are unusable."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)
