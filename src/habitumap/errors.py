"""Error taxonomy shared by the tracking core, storage and API layers."""
from __future__ import annotations


class HabitumapError(Exception):
    """Base class for every recoverable habitumap error."""


class CapabilityDenied(HabitumapError):
    """Location permission or capability could not be acquired."""


class LocationUnavailable(CapabilityDenied):
    """The provider has no current fix to hand out."""


class PreconditionViolation(HabitumapError):
    """An operation was invoked in the wrong session state."""


class NotTracking(PreconditionViolation):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot {operation}: no tracking session is active")
        self.operation = operation


class AlreadyTracking(PreconditionViolation):
    def __init__(self) -> None:
        super().__init__("A tracking session is already active")


class PersistenceFailure(HabitumapError):
    """Reading from or writing to the key-value store failed."""


class HabitNotFound(HabitumapError):
    def __init__(self, habit_id: int) -> None:
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class InvalidHabit(HabitumapError):
    """A habit name was blank or otherwise unusable."""


class RouteNotFound(HabitumapError):
    def __init__(self, route_id: str) -> None:
        super().__init__(f"Route {route_id} not found")
        self.route_id = route_id


class RouteTooShort(HabitumapError):
    """A route needs at least two path samples before it can be shared."""
