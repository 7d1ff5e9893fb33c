"""Habit list, completion toggling, stats and the daily reset."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from habitumap.core.habits import HabitService
from habitumap.core.models import Habit, ResetCountdown
from habitumap.core.reset import DailyResetScheduler
from habitumap.core.stats import HabitSummary, habit_summary
from habitumap.deps import get_habit_service, get_scheduler

router = APIRouter(prefix="/habits", tags=["habits"])


class HabitCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("habit name must not be blank")
        return v


class ResetStatus(BaseModel):
    last_reset_date: Optional[str] = None
    today: str
    next_reset_in: str
    countdown: ResetCountdown


class ResetOut(BaseModel):
    reset: bool


@router.get("", response_model=List[Habit])
def list_habits(service: HabitService = Depends(get_habit_service)):
    return service.list_habits()


@router.post("", response_model=Habit, status_code=201)
def create_habit(body: HabitCreate, service: HabitService = Depends(get_habit_service)):
    return service.add(body.name)


@router.post("/{habit_id}/toggle", response_model=Habit)
def toggle_habit(habit_id: int, service: HabitService = Depends(get_habit_service)):
    return service.toggle(habit_id)


@router.delete("/{habit_id}", status_code=204)
def delete_habit(habit_id: int, service: HabitService = Depends(get_habit_service)):
    service.delete(habit_id)
    return None


@router.get("/stats", response_model=HabitSummary)
def habit_stats(service: HabitService = Depends(get_habit_service)):
    return habit_summary(service.list_habits())


@router.get("/reset", response_model=ResetStatus)
def reset_status(scheduler: DailyResetScheduler = Depends(get_scheduler)):
    now = scheduler.clock()
    countdown = scheduler.time_until_next_reset(now)
    return ResetStatus(
        last_reset_date=scheduler.last_reset_date(),
        today=scheduler.today_string(now),
        next_reset_in=countdown.label,
        countdown=countdown,
    )


@router.post("/reset", response_model=ResetOut)
def run_reset(force: bool = False, scheduler: DailyResetScheduler = Depends(get_scheduler)):
    if force:
        return ResetOut(reset=scheduler.force_reset())
    return ResetOut(reset=scheduler.check_and_reset())
