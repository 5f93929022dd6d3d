"""Habit DTOs and schemas."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class HabitCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=4096)
    difficulty: int = Field(default=1, ge=1, le=5)
    frequency: Literal["DAILY", "WEEKLY", "MONTHLY", "CUSTOM"] = "DAILY"


class HabitUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=4096)
    difficulty: Optional[int] = Field(default=None, ge=1, le=5)
    frequency: Optional[Literal["DAILY", "WEEKLY", "MONTHLY", "CUSTOM"]] = None
    is_active: Optional[bool] = None


class HabitCompletionCreate(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=2048)
    mood: Optional[int] = Field(default=None, ge=1, le=5)
    energy: Optional[int] = Field(default=None, ge=1, le=5)
