"""Administrative HTTP API used by the dashboard."""

from __future__ import annotations

from fastapi import FastAPI

from shopbot.api.routes import router
from shopbot.db.session import Database
from shopbot.runtime import BotRuntime
from shopbot.services.health import HealthSupervisor


def create_app(
    *,
    database: Database,
    health: HealthSupervisor,
    runtime: BotRuntime | None = None,
) -> FastAPI:
    app = FastAPI(title="shopbot admin", docs_url=None, redoc_url=None)
    app.state.database = database
    app.state.health = health
    app.state.runtime = runtime
    app.include_router(router, prefix="/api")
    return app


__all__ = ["create_app"]
