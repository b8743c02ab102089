"""
Admin endpoints, thin pass-through over storage, runtime and health.

- GET    /api/health        run a health check now and return the snapshot
- GET    /api/bot/status    whether polling is running
- POST   /api/bot/start     start polling (no-op when running)
- POST   /api/bot/stop      stop polling and the health timer
- GET    /api/plans         all plans, active or not
- POST   /api/plans         create a plan
- GET    /api/config        current bot config
- PUT    /api/config        partial update, applied live
- GET    /api/logs          buffered log entries, newest first
- DELETE /api/logs          clear the log buffer
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from shopbot.db.session import Database
from shopbot.domain.models import (
    AdminConfigModel,
    AdminConfigUpdate,
    LogEntry,
    PlanCreate,
    PlanModel,
)
from shopbot.logging import logger, set_log_level
from shopbot.runtime import BotRuntime
from shopbot.services.exceptions import ServiceError
from shopbot.services.health import HealthSupervisor
from shopbot.services.storage import Storage

router = APIRouter()


def _success(data: Any = None, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "success"}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def _error(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


async def get_storage(request: Request) -> AsyncIterator[Storage]:
    database: Database = request.app.state.database
    async with database.session() as session:
        yield Storage(session)


def get_health(request: Request) -> HealthSupervisor:
    return request.app.state.health


def get_runtime(request: Request) -> BotRuntime:
    runtime: BotRuntime | None = request.app.state.runtime
    if runtime is None:
        raise HTTPException(status_code=503, detail="Bot runtime is not configured")
    return runtime


@router.get("/health")
async def health_check(health: HealthSupervisor = Depends(get_health)):
    try:
        status = await health.run_check()
    except Exception as exc:
        logger.error("api_health_check_failed", error=str(exc))
        return _error(str(exc))
    return _success(status.model_dump(mode="json"))


@router.get("/bot/status")
async def bot_status(runtime: BotRuntime = Depends(get_runtime)):
    return _success({"isRunning": runtime.is_running})


@router.post("/bot/start")
async def start_bot(runtime: BotRuntime = Depends(get_runtime)):
    try:
        started = await runtime.start()
    except Exception as exc:
        logger.error("api_bot_start_failed", error=str(exc))
        return _error(str(exc))
    if not started:
        return _success(message="Bot is already running")
    return _success(message="Bot started successfully")


@router.post("/bot/stop")
async def stop_bot(runtime: BotRuntime = Depends(get_runtime)):
    try:
        await runtime.stop()
    except Exception as exc:
        logger.error("api_bot_stop_failed", error=str(exc))
        return _error(str(exc))
    return _success(message="Bot stopped successfully")


@router.get("/plans")
async def list_plans(storage: Storage = Depends(get_storage)):
    try:
        plans = await storage.list_plans()
    except ServiceError as exc:
        return _error(str(exc))
    return _success([PlanModel.model_validate(plan).model_dump(mode="json") for plan in plans])


@router.post("/plans", status_code=201)
async def create_plan(payload: PlanCreate, storage: Storage = Depends(get_storage)):
    try:
        plan = await storage.create_plan(**payload.model_dump())
        await storage.commit()
    except ServiceError as exc:
        return _error(str(exc))
    logger.info("plan_created", plan_id=plan.id, plan_name=plan.name)
    return _success(PlanModel.model_validate(plan).model_dump(mode="json"))


@router.get("/config")
async def get_config(storage: Storage = Depends(get_storage)):
    try:
        config = await storage.get_config()
    except ServiceError as exc:
        return _error(str(exc))
    data = AdminConfigModel.model_validate(config).model_dump(mode="json") if config else None
    return _success(data)


@router.put("/config")
async def update_config(
    payload: AdminConfigUpdate,
    storage: Storage = Depends(get_storage),
    health: HealthSupervisor = Depends(get_health),
):
    changes = payload.model_dump(exclude_none=True)
    try:
        config = await storage.save_config(**changes)
        await storage.commit()
    except ServiceError as exc:
        return _error(str(exc))

    if "log_level" in changes or "detailed_logging" in changes:
        set_log_level(config.log_level, detailed=config.detailed_logging)
    if "health_check_interval" in changes:
        health.set_interval(config.health_check_interval)

    return _success(
        AdminConfigModel.model_validate(config).model_dump(mode="json"),
        message="Configuration updated successfully",
    )


@router.get("/logs")
async def get_logs(
    storage: Storage = Depends(get_storage),
    level: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=5000),
):
    entries: list[LogEntry] = storage.list_logs(level=level, limit=limit)
    return _success([entry.model_dump(mode="json") for entry in entries])


@router.delete("/logs")
async def clear_logs(storage: Storage = Depends(get_storage)):
    storage.clear_logs()
    return _success(message="Logs cleared successfully")


__all__ = ["get_health", "get_runtime", "get_storage", "router"]
