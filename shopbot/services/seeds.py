"""Startup seed helpers."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shopbot.db.models.core import Plan
from shopbot.logging import logger
from shopbot.utils.datetime import utc_now_naive

DEFAULT_PLANS = (
    {
        "name": "Basic Monthly",
        "description": "Standard VPN service for 1 month",
        "duration_days": 30,
        "price": 4200,
        "traffic_gb": 100,
        "devices": 2,
        "plan_type": "basic",
    },
    {
        "name": "Premium Monthly",
        "description": "Enhanced VPN service for 1 month",
        "duration_days": 30,
        "price": 6000,
        "traffic_gb": 500,
        "devices": 5,
        "plan_type": "premium",
    },
    {
        "name": "Basic Quarterly",
        "description": "Standard VPN service for 3 months",
        "duration_days": 90,
        "price": 10500,
        "traffic_gb": 100,
        "devices": 2,
        "plan_type": "basic",
    },
    {
        "name": "Premium Quarterly",
        "description": "Enhanced VPN service for 3 months",
        "duration_days": 90,
        "price": 15000,
        "traffic_gb": 500,
        "devices": 5,
        "plan_type": "premium",
    },
    {
        "name": "Ultimate Yearly",
        "description": "Unlimited VPN service for 1 year",
        "duration_days": 365,
        "price": 45000,
        "traffic_gb": None,
        "devices": 10,
        "plan_type": "ultimate",
    },
)


async def ensure_default_plans(session: AsyncSession) -> int:
    """Insert the sample catalogue when no plans exist yet.

    Existing plans are left untouched since they are edited by the admin.
    Returns the number of plans created.
    """

    result = await session.execute(select(func.count(Plan.id)))
    if result.scalar_one():
        return 0

    now = utc_now_naive()
    session.add_all(Plan(is_active=True, created_at=now, **payload) for payload in DEFAULT_PLANS)
    await session.commit()
    logger.info("default_plans_seeded", count=len(DEFAULT_PLANS))
    return len(DEFAULT_PLANS)


__all__ = ["DEFAULT_PLANS", "ensure_default_plans"]
