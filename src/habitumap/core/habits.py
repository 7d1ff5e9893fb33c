from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

from pydantic import ValidationError

from habitumap.core.models import Habit
from habitumap.errors import HabitNotFound, InvalidHabit, PersistenceFailure
from habitumap.storage.repository import LocalRepository

log = logging.getLogger(__name__)


class HabitSource(ABC):
    """Habits collaborator consumed by the daily reset scheduler."""

    @abstractmethod
    def list_habits(self) -> List[Habit]:
        raise NotImplementedError

    @abstractmethod
    def set_all_incomplete(self, habits: List[Habit]) -> bool:
        raise NotImplementedError


class HabitService(HabitSource):
    def __init__(self, repository: LocalRepository) -> None:
        self.repository = repository

    def list_habits(self) -> List[Habit]:
        return self.repository.get_habits()

    def add(self, name: str) -> Habit:
        habits = self.repository.get_habits()
        next_id = max((h.id for h in habits), default=0) + 1
        try:
            habit = Habit(id=next_id, name=name)
        except ValidationError as exc:
            raise InvalidHabit(f"Invalid habit name {name!r}") from exc
        habits.append(habit)
        self.repository.save_habits(habits)
        return habit

    def toggle(self, habit_id: int) -> Habit:
        """Flip completion; completing extends the streak, undoing keeps it."""
        habits = self.repository.get_habits()
        for i, h in enumerate(habits):
            if h.id == habit_id:
                updated = h.model_copy(
                    update={
                        "completed": not h.completed,
                        "streak": h.streak + 1 if not h.completed else h.streak,
                    }
                )
                habits[i] = updated
                self.repository.save_habits(habits)
                return updated
        raise HabitNotFound(habit_id)

    def delete(self, habit_id: int) -> None:
        habits = self.repository.get_habits()
        kept = [h for h in habits if h.id != habit_id]
        if len(kept) == len(habits):
            raise HabitNotFound(habit_id)
        self.repository.save_habits(kept)

    def set_all_incomplete(self, habits: List[Habit]) -> bool:
        try:
            self.repository.save_habits([h.model_copy(update={"completed": False}) for h in habits])
            return True
        except PersistenceFailure as exc:
            log.error("Error resetting habits: %s", exc)
            return False
