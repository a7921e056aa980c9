"""Best-effort activity trail for entity lifecycle events."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from app.core.metrics import record_activity_failure
from app.core.request_context import get_request_id
from app.db.models import Activity
from app.storage.base import WorldStorage


logger = logging.getLogger(__name__)

_VERBS = {"create": "Created", "update": "Updated", "delete": "Deleted"}


def describe_activity(action: str, entity_type: str, entity_name: str) -> str:
    verb = _VERBS.get(action, action.capitalize())
    return f'{verb} {entity_type.replace("_", " ")} "{entity_name}"'


class ActivityLogger:
    """Writes activity rows; a failed write is logged and counted, never raised."""

    def __init__(self, storage: WorldStorage, user_id: str | None = None):
        self.storage = storage
        self.user_id = user_id

    def log(
        self,
        project_id: uuid.UUID,
        entity_type: str,
        entity_id: uuid.UUID,
        entity_name: str,
        action: str,
        metadata: dict[str, Any] | None = None,
    ) -> Activity | None:
        try:
            return self.storage.add_activity(
                {
                    "project_id": project_id,
                    "entity_type": entity_type,
                    "entity_id": entity_id,
                    "entity_name": entity_name,
                    "action": action,
                    "description": describe_activity(action, entity_type, entity_name),
                    "metadata_": metadata or {},
                    "user_id": self.user_id,
                    "request_id": get_request_id(),
                }
            )
        except Exception:
            record_activity_failure(action)
            logger.warning(
                "activity_log_failed",
                exc_info=True,
                extra={"entity_type": entity_type, "entity_id": str(entity_id), "action": action},
            )
            return None

    def log_create(self, project_id, entity_type, entity_id, entity_name, metadata=None):
        return self.log(project_id, entity_type, entity_id, entity_name, "create", metadata)

    def log_update(self, project_id, entity_type, entity_id, entity_name, metadata=None):
        return self.log(project_id, entity_type, entity_id, entity_name, "update", metadata)

    def log_delete(self, project_id, entity_type, entity_id, entity_name, metadata=None):
        return self.log(project_id, entity_type, entity_id, entity_name, "delete", metadata)
