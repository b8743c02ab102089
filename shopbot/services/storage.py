"""Typed persistence surface over users, plans, orders, config and logs."""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, Iterable, ParamSpec, Sequence, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shopbot.db.models.core import BotConfig, ChatUser, Order, Plan
from shopbot.domain.models import LogEntry
from shopbot.services.exceptions import PersistenceFailure
from shopbot.services.log_buffer import LogBuffer, get_log_buffer
from shopbot.utils.datetime import utc_now_naive

P = ParamSpec("P")
T = TypeVar("T")

CONFIG_FIELDS = ("admin_id", "log_level", "health_check_interval", "detailed_logging", "last_started")
CONFIG_DEFAULTS: dict[str, Any] = {
    "log_level": "info",
    "health_check_interval": 5,
    "detailed_logging": True,
}


def _persistence(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"{func.__name__} failed: {exc}") from exc

    return wrapper


class Storage:
    """Per-session facade; writes are flushed, the caller decides when to commit."""

    def __init__(self, session: AsyncSession, log_buffer: LogBuffer | None = None) -> None:
        self.session = session
        self.log_buffer = log_buffer if log_buffer is not None else get_log_buffer()

    @_persistence
    async def commit(self) -> None:
        await self.session.commit()

    # Users ------------------------------------------------------------

    @_persistence
    async def get_user(self, telegram_id: str) -> ChatUser | None:
        stmt = select(ChatUser).where(ChatUser.telegram_id == telegram_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    @_persistence
    async def create_user(
        self,
        telegram_id: str,
        *,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> ChatUser:
        now = utc_now_naive()
        user = ChatUser(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            joined_at=now,
            last_activity_at=now,
        )
        self.session.add(user)
        await self.session.flush()
        return user

    @_persistence
    async def touch_user_activity(self, telegram_id: str) -> None:
        stmt = (
            update(ChatUser)
            .where(ChatUser.telegram_id == telegram_id)
            .values(last_activity_at=utc_now_naive())
        )
        await self.session.execute(stmt)

    # Plans ------------------------------------------------------------

    @_persistence
    async def get_plan(self, plan_id: int) -> Plan | None:
        return await self.session.get(Plan, plan_id)

    @_persistence
    async def list_plans(self) -> Sequence[Plan]:
        result = await self.session.execute(select(Plan).order_by(Plan.id))
        return result.scalars().all()

    @_persistence
    async def list_active_plans(self) -> Sequence[Plan]:
        stmt = select(Plan).where(Plan.is_active.is_(True)).order_by(Plan.price, Plan.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    @_persistence
    async def create_plan(self, **fields: Any) -> Plan:
        plan = Plan(created_at=utc_now_naive(), **fields)
        self.session.add(plan)
        await self.session.flush()
        return plan

    # Orders -----------------------------------------------------------

    @_persistence
    async def create_order(self, user_id: str, plan_id: int) -> Order:
        now = utc_now_naive()
        order = Order(
            user_id=user_id,
            plan_id=plan_id,
            status="pending",
            created_at=now,
            updated_at=now,
        )
        self.session.add(order)
        await self.session.flush()
        return order

    @_persistence
    async def get_order(self, order_id: int, *, refresh: bool = False) -> Order | None:
        if refresh:
            return await self.session.get(Order, order_id, populate_existing=True)
        return await self.session.get(Order, order_id)

    @_persistence
    async def get_orders_for_user(self, user_id: str) -> Sequence[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    @_persistence
    async def get_latest_order(self, user_id: str, statuses: Iterable[str]) -> Order | None:
        """Most recently created order in one of ``statuses``; ties go to the higher id."""

        stmt = (
            select(Order)
            .where(Order.user_id == user_id, Order.status.in_(tuple(statuses)))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    @_persistence
    async def update_order_status(
        self, order_id: int, status: str, *, expected: str | None = None
    ) -> Order | None:
        """Set the status; with ``expected`` the write only applies if the stored status matches.

        Returns ``None`` when no row was affected.
        """

        stmt = update(Order).where(Order.id == order_id)
        if expected is not None:
            stmt = stmt.where(Order.status == expected)
        stmt = stmt.values(status=status, updated_at=utc_now_naive()).execution_options(
            synchronize_session=False
        )
        result = await self.session.execute(stmt)
        if not result.rowcount:
            return None
        return await self.session.get(Order, order_id, populate_existing=True)

    # Config -----------------------------------------------------------

    @_persistence
    async def get_config(self) -> BotConfig | None:
        result = await self.session.execute(select(BotConfig).order_by(BotConfig.id).limit(1))
        return result.scalars().first()

    @_persistence
    async def save_config(self, **changes: Any) -> BotConfig:
        """Upsert the singleton config row.

        ``None`` values are ignored and a blank ``admin_id`` never clears a
        stored one.
        """

        unknown = set(changes) - set(CONFIG_FIELDS)
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")

        config = await self.get_config()
        if config is None:
            values = {**CONFIG_DEFAULTS, "last_started": utc_now_naive()}
            values.update({key: value for key, value in changes.items() if value is not None})
            if not values.get("admin_id"):
                values["admin_id"] = None
            config = BotConfig(**values)
            self.session.add(config)
        else:
            for key, value in changes.items():
                if value is None:
                    continue
                if key == "admin_id" and not str(value).strip():
                    continue
                setattr(config, key, value)
        await self.session.flush()
        return config

    # Logs -------------------------------------------------------------

    def append_log(
        self,
        level: str,
        message: str,
        *,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> LogEntry:
        return self.log_buffer.append(level, message, user_id=user_id, metadata=metadata)

    def list_logs(self, level: str | None = None, limit: int | None = None) -> list[LogEntry]:
        return self.log_buffer.list(level=level, limit=limit)

    def clear_logs(self) -> None:
        self.log_buffer.clear()


__all__ = ["Storage"]
