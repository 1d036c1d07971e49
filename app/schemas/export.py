"""Schemas for full-ledger exports."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.schemas.event import EventRead

EXPORT_COLUMNS = (
    "id",
    "type",
    "actor_id",
    "actor_name",
    "message_id",
    "channel_id",
    "status",
    "created_at",
    "customer_name",
    "set_date",
    "has_bill",
    "system_size",
    "setter_id",
    "setter_name",
)


class ExportStatus(StrEnum):
    READY = "ready"
    EMPTY = "empty"


class ExportRow(BaseModel):
    """An event enriched with resolved display names."""

    event: EventRead
    actor_name: str
    setter_name: Optional[str] = None

    def as_record(self) -> dict[str, Any]:
        record = self.event.model_dump(mode="json")
        record["actor_name"] = self.actor_name
        record["setter_name"] = self.setter_name
        return record


class ExportResult(BaseModel):
    """Point-in-time dump of the ledger, oldest id first."""

    status: ExportStatus
    generated_at: datetime
    rows: list[ExportRow] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.status == ExportStatus.EMPTY

    @property
    def filename(self) -> str:
        return f"ledger_export_{self.generated_at:%Y%m%d_%H%M%S}.csv"

    def to_csv(self) -> str:
        """Render rows as CSV. Booleans become 1/0 and missing values empty."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(EXPORT_COLUMNS)
        for row in self.rows:
            record = row.as_record()
            writer.writerow([_csv_value(record.get(column)) for column in EXPORT_COLUMNS])
        return buffer.getvalue()


def _csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return 1 if value else 0
    return value
