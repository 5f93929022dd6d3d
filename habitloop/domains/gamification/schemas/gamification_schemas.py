"""Gamification DTOs."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LevelProgress(BaseModel):
    level: int = Field(ge=1)
    total_points: int
    points_for_next_level: int
    progress: float = Field(ge=0, le=100)
