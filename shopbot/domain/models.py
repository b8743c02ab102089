"""Pydantic models shared across service and API layers."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

OrderStatus = Literal["pending", "paid", "completed", "cancelled"]
LogLevel = Literal["error", "warn", "info", "debug", "verbose"]


class ChatUserModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    telegram_id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    joined_at: datetime | None = None
    last_activity_at: datetime | None = None


class PlanModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    duration_days: int
    price: int
    traffic_gb: int | None = None
    devices: int | None = None
    plan_type: str = "basic"
    is_active: bool = True


class PlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str | None = None
    duration_days: int = Field(ge=1)
    price: int = Field(ge=0, description="Price in cents.")
    traffic_gb: int | None = Field(default=None, ge=0)
    devices: int | None = Field(default=None, ge=1)
    plan_type: Literal["basic", "premium", "ultimate"] = "basic"
    is_active: bool = True


class OrderModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    plan_id: int
    status: OrderStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdminConfigModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    admin_id: str | None = None
    log_level: LogLevel = "info"
    health_check_interval: int = 5
    detailed_logging: bool = True
    last_started: datetime | None = None


class AdminConfigUpdate(BaseModel):
    admin_id: str | None = None
    log_level: LogLevel | None = None
    health_check_interval: int | None = Field(default=None, ge=1, le=1440)
    detailed_logging: bool | None = None


class LogEntry(BaseModel):
    id: int
    level: LogLevel
    message: str
    user_id: str | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime


class MemorySnapshot(BaseModel):
    rss_mb: float
    vms_mb: float
    percent: float


class HealthStatus(BaseModel):
    timestamp: datetime
    uptime_seconds: float
    bot_running: bool = False
    telegram_api_connected: bool = False
    memory: MemorySnapshot | None = None
    health_check_interval: int = 5
    last_error: str | None = None


__all__ = [
    "AdminConfigModel",
    "AdminConfigUpdate",
    "ChatUserModel",
    "HealthStatus",
    "LogEntry",
    "LogLevel",
    "MemorySnapshot",
    "OrderModel",
    "OrderStatus",
    "PlanCreate",
    "PlanModel",
]
