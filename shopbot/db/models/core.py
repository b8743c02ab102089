"""SQLAlchemy models for users, plans, orders and the bot configuration."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shopbot.db.base import Base
from shopbot.utils.datetime import utc_now_naive

ORDER_STATUSES = ("pending", "paid", "completed", "cancelled")
LOG_LEVEL_NAMES = ("error", "warn", "info", "debug", "verbose")


class ChatUser(Base):
    __tablename__ = "bot_users"
    __table_args__ = (UniqueConstraint("telegram_id", name="uq_bot_users_telegram_id"),)

    telegram_id: Mapped[str] = mapped_column(String(32), nullable=False)
    username: Mapped[str | None] = mapped_column(String(64))
    first_name: Mapped[str | None] = mapped_column(String(128))
    last_name: Mapped[str | None] = mapped_column(String(128))
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)

    orders: Mapped[list["Order"]] = relationship(back_populates="user")


class Plan(Base):
    __tablename__ = "vpn_plans"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    # minor currency units (cents)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    traffic_gb: Mapped[int | None] = mapped_column(Integer)
    devices: Mapped[int | None] = mapped_column(Integer)
    plan_type: Mapped[str] = mapped_column(String(32), default="basic", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)

    orders: Mapped[list["Order"]] = relationship(back_populates="plan")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_user_status_created", "user_id", "status", "created_at"),)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("bot_users.telegram_id"), nullable=False
    )
    plan_id: Mapped[int] = mapped_column(ForeignKey("vpn_plans.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(*ORDER_STATUSES, name="order_status"), default="pending", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now_naive, onupdate=utc_now_naive
    )

    user: Mapped[ChatUser] = relationship(back_populates="orders")
    plan: Mapped[Plan] = relationship(back_populates="orders")


class BotConfig(Base):
    __tablename__ = "bot_config"

    admin_id: Mapped[str | None] = mapped_column(String(32))
    log_level: Mapped[str] = mapped_column(
        Enum(*LOG_LEVEL_NAMES, name="log_level"), default="info", nullable=False
    )
    health_check_interval: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    detailed_logging: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_started: Mapped[datetime | None] = mapped_column(DateTime, default=utc_now_naive)


__all__ = [
    "BotConfig",
    "ChatUser",
    "LOG_LEVEL_NAMES",
    "ORDER_STATUSES",
    "Order",
    "Plan",
]
