"""Summaries shown on the history and stats views."""
from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel

from habitumap.core.models import Habit, Route


class HistorySummary(BaseModel):
    total_routes: int
    total_distance_km: float


class HabitSummary(BaseModel):
    total: int
    completed: int
    percentage: float   # 0..100
    longest_streak: int


def history_summary(routes: Iterable[Route]) -> HistorySummary:
    routes = list(routes)
    return HistorySummary(
        total_routes=len(routes),
        total_distance_km=sum(r.distance_km for r in routes),
    )


def habit_summary(habits: List[Habit]) -> HabitSummary:
    total = len(habits)
    completed = sum(1 for h in habits if h.completed)
    return HabitSummary(
        total=total,
        completed=completed,
        percentage=(completed / total) * 100 if total else 0.0,
        longest_streak=max((h.streak for h in habits), default=0),
    )
