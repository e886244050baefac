from typing import Any, Dict

from fastapi import HTTPException, status


class DiscoveryError(Exception):
    """Base class for errors raised inside the discovery core."""


class SearchBackendError(DiscoveryError):
    def __init__(self, backend: str, operation: str, cause: Exception = None):
        self.backend = backend
        self.operation = operation
        self.cause = cause
        message = f"{backend} failed during {operation}"
        if cause is not None:
            message = f"{message}: {cause!r}"
        super().__init__(message)


class UnknownCommandError(DiscoveryError):
    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unknown command: {command}")


class InvalidPayloadError(DiscoveryError):
    def __init__(self, command: str, errors: list):
        self.command = command
        self.errors = errors
        super().__init__(f"Invalid payload for {command}")


class APIError(HTTPException):
    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str = None,
        metadata: Dict[str, Any] = None
    ):
        super().__init__(
            status_code=status_code,
            detail={
                "message": detail,
                "error_code": error_code or "UNKNOWN_ERROR",
                "metadata": metadata or {}
            }
        )


class ValidationError(APIError):
    def __init__(self, detail: str = "Validation failed", metadata: Dict[str, Any] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="INVALID_PAYLOAD",
            metadata=metadata
        )


class NotFoundError(APIError):
    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id {resource_id} not found",
            error_code="RESOURCE_NOT_FOUND",
            metadata={"resource": resource, "id": resource_id}
        )
