import contextvars
from contextlib import contextmanager
import uuid

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
user_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("user_id", default=None)
project_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("project_id", default=None)


def set_request_id(request_id: str) -> contextvars.Token:
    """Store the current request ID in a context variable."""
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    """Reset the request ID context variable to a previous state."""
    request_id_var.reset(token)


def get_request_id() -> str | None:
    """Retrieve the current request ID from the context."""
    return request_id_var.get()


def _normalize_id(value: uuid.UUID | str | None) -> str | None:
    if value is None:
        return None
    return str(value)


def set_user_id(user_id: str | None) -> contextvars.Token:
    """Bind the authenticated caller to the current context."""
    return user_id_var.set(user_id)


def get_user_id() -> str | None:
    """Retrieve the authenticated user ID for logging."""
    return user_id_var.get()


def get_project_id() -> str | None:
    """Retrieve the current project ID for logging."""
    return project_id_var.get()


@contextmanager
def log_context(
    user_id: str | None = None,
    project_id: uuid.UUID | str | None = None,
):
    """Temporarily scope user/project context for structured logs."""
    tokens: list[tuple[contextvars.ContextVar[str | None], contextvars.Token]] = []
    if user_id is not None:
        tokens.append((user_id_var, user_id_var.set(user_id)))
    if project_id is not None:
        tokens.append((project_id_var, project_id_var.set(_normalize_id(project_id))))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
