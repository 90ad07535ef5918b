"""
FastAPI application — per-user study analytics API.
Runs on http://127.0.0.1:8765 by default.

The store and the analytics engines live on app.state so that each call to
create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..analytics.compare import ComparisonEngine
from ..analytics.history import HistoryAssembler
from ..analytics.insights import InsightEngine
from ..analytics.recommend import RecommendationEngine
from ..analytics.stats import StatisticsAggregator
from ..analytics.study_calendar import StudyCalendar
from ..config import config
from ..errors import ContractViolationError
from ..store.sessions import SessionStore

logger = logging.getLogger(__name__)


def build_services(store: SessionStore, clock: Callable[[], datetime] = datetime.now) -> dict:
    """Wire the analytics engines over one store and one clock."""
    history = HistoryAssembler(store)
    stats = StatisticsAggregator(history)
    insights = InsightEngine(history, clock=clock)
    return {
        "history": history,
        "stats": stats,
        "insights": insights,
        "recommend": RecommendationEngine(history, insights, clock=clock),
        "compare": ComparisonEngine(stats),
        "calendar": StudyCalendar(history, clock=clock),
    }


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    db_path: Optional[Path] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = SessionStore(db_path or config.sessions_db_path)
        app.state.services = build_services(app.state.store, clock)
        yield

    app = FastAPI(
        title="Studyflow",
        description="Unified analytics for timed and pomodoro study sessions",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(ContractViolationError)
    async def contract_violation(request: Request, exc: ContractViolationError):
        logger.info("rejected %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    from .routers import analytics

    app.include_router(analytics.router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
