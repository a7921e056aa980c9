import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.core.request_context import get_project_id, get_request_id, get_user_id


# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {"message", "taskName"}
_CONTEXT_ATTRS = frozenset({"request_id", "user_id", "project_id"})

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class RequestIdFilter(logging.Filter):
    """Stamp records with the request, caller and project bound to the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "unknown"
        record.user_id = get_user_id() or ""
        record.project_id = get_project_id() or ""
        return True


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record; `extra=` fields are merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "unknown"),
            "user_id": getattr(record, "user_id", ""),
        }
        if getattr(record, "project_id", None):
            payload["project_id"] = record.project_id
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in _CONTEXT_ATTRS or key.startswith("_") or value is None:
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info
        try:
            return json.dumps(payload, default=str)
        except (TypeError, ValueError):
            return super().format(record)


def _attach(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Route every logger through the JSON formatter, optionally mirrored to a rotating file."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = StructuredJsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z")
    _attach(root, logging.StreamHandler(), formatter)
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _attach(
            root,
            RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"),
            formatter,
        )

    # request_complete records replace uvicorn's access log.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
