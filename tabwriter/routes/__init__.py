"""
Routes package for the TabWriter API.

Aggregates every APIRouter so the application factory can mount them
under one prefix.
"""

from __future__ import annotations

from typing import Iterable

from fastapi import FastAPI

from tabwriter.routes.evidence import router as evidence_router
from tabwriter.routes.research import router as research_router
from tabwriter.routes.system import router as system_router
from tabwriter.routes.writing import router as writing_router

__all__ = [
    "evidence_router",
    "research_router",
    "writing_router",
    "system_router",
    "all_routers",
    "iter_routers",
    "register_all_routers",
]

all_routers = [
    evidence_router,
    research_router,
    writing_router,
    system_router,
]


def iter_routers() -> Iterable:
    """Yield all router objects (simple iterator helper)."""
    yield from all_routers


def register_all_routers(app: FastAPI, *, prefix: str = "/api") -> None:
    """Register all routers on the provided FastAPI application."""
    for router in iter_routers():
        app.include_router(router, prefix=prefix)
