"""Key naming conventions for the local key-value store."""
from __future__ import annotations

_PREFIX = "habitumap"


def habits() -> str:
    return f"{_PREFIX}:habits"


def routes() -> str:
    return f"{_PREFIX}:routes"


def current_tracking() -> str:
    """In-progress session snapshot (crash/restart recovery)."""
    return f"{_PREFIX}:current_tracking"


def last_reset_date() -> str:
    """Daily reset cursor: local YYYY-MM-DD of the last successful reset."""
    return f"{_PREFIX}:last_reset_date"


def all_keys() -> list[str]:
    return [habits(), routes(), current_tracking(), last_reset_date()]
