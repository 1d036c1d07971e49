"""Pydantic schemas for system endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthRead(BaseModel):
    """Liveness and wiring summary. Carries no credentials."""

    status: str
    app: str
    environment: str
    database_driver: Optional[str] = None
    telegram_enabled: bool
    timezone: str
    active_prompts: int = 0
