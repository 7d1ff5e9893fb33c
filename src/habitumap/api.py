"""FastAPI backend for habitumap."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from habitumap.db import get_supabase
from habitumap.errors import (
    CapabilityDenied,
    HabitNotFound,
    InvalidHabit,
    PersistenceFailure,
    PreconditionViolation,
    RouteNotFound,
    RouteTooShort,
)
from habitumap.routers import feed, habits, history, profiles, tracking
from habitumap.storage.kv import RedisStore, get_store

log = logging.getLogger(__name__)

app = FastAPI(title="Habitumap", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(tracking.router)
app.include_router(history.router)
app.include_router(habits.router)
app.include_router(feed.router)
app.include_router(profiles.router)


# ---------------------------------------------------------------------------
# Domain errors -> HTTP
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = [
    (CapabilityDenied, 403),
    (PreconditionViolation, 409),
    (HabitNotFound, 404),
    (InvalidHabit, 422),
    (RouteNotFound, 404),
    (RouteTooShort, 422),
    (PersistenceFailure, 503),
]


def _make_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


for _exc_type, _status in _STATUS_BY_ERROR:
    app.add_exception_handler(_exc_type, _make_handler(_status))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    store = get_store()
    redis_ok = False
    if isinstance(store, RedisStore):
        try:
            store.ping()
            redis_ok = True
        except PersistenceFailure:
            pass

    supabase_ok = get_supabase() is not None

    return {"status": "ok", "redis": redis_ok, "supabase": supabase_ok}
