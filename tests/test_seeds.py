"""Tests for the default plan catalogue seeding."""

from __future__ import annotations

import pytest

from helpers import add_plan
from shopbot.services.seeds import DEFAULT_PLANS, ensure_default_plans


@pytest.mark.asyncio
async def test_seeds_empty_catalogue_once(session, storage):
    assert await ensure_default_plans(session) == len(DEFAULT_PLANS)
    assert await ensure_default_plans(session) == 0

    plans = await storage.list_plans()
    assert len(plans) == len(DEFAULT_PLANS)
    assert all(plan.is_active for plan in plans)


@pytest.mark.asyncio
async def test_existing_catalogue_is_left_alone(session, storage):
    await add_plan(session, name="Custom")

    assert await ensure_default_plans(session) == 0
    assert [plan.name for plan in await storage.list_plans()] == ["Custom"]
