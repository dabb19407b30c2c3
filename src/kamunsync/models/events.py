"""Change notifications streamed by the remote store."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from .enums import ChangeKind


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    """
    A single insert/update/delete notification.

    record carries the full row for insert/update; for delete it carries at
    least the row id.
    """

    kind: ChangeKind
    table: str
    record: dict[str, Any]
    session_id: Optional[str] = None

    @property
    def record_id(self) -> Optional[str]:
        value = self.record.get("id")
        return value if isinstance(value, str) else None

    def to_json(self) -> str:
        return json.dumps(
            {
                "kind": self.kind.value,
                "table": self.table,
                "record": self.record,
                "session_id": self.session_id,
            },
            default=str,
        )

    @classmethod
    def from_json(cls, payload: str | bytes) -> ChangeEvent:
        """Parse a published event. Raises ValueError on malformed payloads."""
        try:
            data = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValueError("change event payload is not valid JSON") from exc

        if not isinstance(data, dict):
            raise ValueError("change event payload must be an object")

        record = data.get("record")
        if not isinstance(record, dict):
            raise ValueError("change event record must be an object")

        session_id = data.get("session_id")
        return cls(
            kind=ChangeKind(data.get("kind")),
            table=str(data.get("table", "")),
            record=record,
            session_id=session_id if isinstance(session_id, str) else None,
        )
