"""
Application-level exception types.

Each exception carries the HTTP status it maps to so the FastAPI handlers in
`app.main` can translate it without a lookup table.
"""

from __future__ import annotations


class AppError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.detail = detail or message
        super().__init__(message)


class ValidationFailedError(AppError):
    """Raised when a request is well-formed JSON but semantically invalid."""

    status_code = 400


class AuthenticationError(AppError):
    """Raised when the bearer token is missing or rejected by the identity provider."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", *, detail: str | None = None) -> None:
        super().__init__(message, detail=detail)


class AuthNotConfiguredError(AppError):
    """Raised when no identity provider is configured."""

    status_code = 500

    def __init__(self, message: str = "Authentication service not configured") -> None:
        super().__init__(message)


class ProjectAccessDeniedError(AppError):
    """Raised when the caller does not own the project."""

    status_code = 403

    def __init__(self, project_id: object) -> None:
        super().__init__(f"access denied to project {project_id}", detail="Access denied")
        self.project_id = project_id


class EntityNotFoundError(AppError):
    """Raised when a database entity cannot be found."""

    status_code = 404

    def __init__(self, entity_type: str, entity_id: object) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            detail=f"{entity_type} not found",
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class UploadRejectedError(AppError):
    """Raised when an uploaded file fails the image filter or size limit."""

    status_code = 400

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorageError(AppError):
    """Raised when a storage operation fails and has been rolled back."""

    status_code = 500


class MediaStorageError(AppError):
    """Raised when the media backend rejects a write or delete."""

    status_code = 502


class ConfigurationError(AppError):
    """Raised when required configuration is missing or invalid."""
