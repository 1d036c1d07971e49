"""Schemas for derived ledger statistics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    actor_id: str
    count: int


class StatsSummary(BaseModel):
    """The /stats dashboard: window counts plus today's set leaderboard."""

    generated_at: datetime
    daily_sets: int
    weekly_closes: int
    monthly_closes: int
    monthly_installs: int
    leaderboard: list[LeaderboardEntry] = Field(default_factory=list)
