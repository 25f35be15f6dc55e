"""Change event types pushed to real-time listeners.

Learn: A ChangeEvent is built right after a mutation commits, handed to
the notifier, delivered to every listener, then dropped. Nothing here is
stored.

Wire shape: {"type": "CREATE", "id": 1, "entity": {...}}
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from stockroom.schemas.widget import Widget


class ChangeType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """One create/update/delete notification.

    `entity` carries the resulting widget for CREATE and UPDATE and is
    None for DELETE.
    """

    type: ChangeType
    id: int
    entity: Optional[Widget] = None

    model_config = {"frozen": True}

    @classmethod
    def created(cls, widget: Widget) -> "ChangeEvent":
        return cls(type=ChangeType.CREATE, id=widget.id, entity=widget)

    @classmethod
    def updated(cls, widget: Widget) -> "ChangeEvent":
        return cls(type=ChangeType.UPDATE, id=widget.id, entity=widget)

    @classmethod
    def deleted(cls, widget_id: int) -> "ChangeEvent":
        return cls(type=ChangeType.DELETE, id=widget_id)

    def to_json(self) -> str:
        """Serialize for a WebSocket text frame (camelCase widget fields)."""
        return self.model_dump_json(by_alias=True)
