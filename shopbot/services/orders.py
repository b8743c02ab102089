"""Order lifecycle: pending -> paid -> completed, with cancellation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shopbot.db.models.core import Order, Plan
from shopbot.logging import logger
from shopbot.services.exceptions import (
    InvalidPlan,
    InvalidTransition,
    NoEligibleOrder,
    Unauthorized,
)
from shopbot.services.storage import Storage

if TYPE_CHECKING:
    from shopbot.services.admin import AdminService

PENDING = "pending"
PAID = "paid"
COMPLETED = "completed"
CANCELLED = "cancelled"

ACTIVE_STATUSES = (PENDING, PAID)
TERMINAL_STATUSES = (COMPLETED, CANCELLED)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({PAID, CANCELLED}),
    PAID: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class OrderService:
    """State machine over persisted orders.

    Every successful transition is committed before the method returns, so
    callers may reply to the user right away. Writes are conditional on the
    previously observed status; when a concurrent writer got there first the
    update affects no rows and the move is rejected.
    """

    def __init__(self, storage: Storage, admin: "AdminService | None" = None) -> None:
        self.storage = storage
        self.admin = admin

    async def create(self, user_id: str, plan_id: int) -> tuple[Order, Plan]:
        plan = await self.storage.get_plan(plan_id)
        if plan is None or not plan.is_active:
            raise InvalidPlan(f"Plan {plan_id} is not available.")

        order = await self.storage.create_order(user_id, plan.id)
        await self.storage.commit()
        logger.info(
            "order_created",
            user_id=user_id,
            order_id=order.id,
            plan_id=plan.id,
            plan_name=plan.name,
        )
        return order, plan

    async def find_active_order(self, user_id: str) -> Order | None:
        return await self.storage.get_latest_order(user_id, ACTIVE_STATUSES)

    async def transition(self, order_id: int, target: str) -> Order:
        order = await self.storage.get_order(order_id, refresh=True)
        if order is None:
            raise NoEligibleOrder(f"Order {order_id} does not exist.")

        current = order.status
        if not can_transition(current, target):
            raise InvalidTransition(f"Order {order_id} cannot move from {current} to {target}.")

        updated = await self.storage.update_order_status(order_id, target, expected=current)
        if updated is None:
            # End the current transaction so the re-read sees the competing commit.
            await self.storage.commit()
            latest = await self.storage.get_order(order_id, refresh=True)
            observed = latest.status if latest else "missing"
            logger.warning(
                "order_transition_conflict",
                order_id=order_id,
                expected=current,
                observed=observed,
                target=target,
            )
            raise InvalidTransition(
                f"Order {order_id} changed concurrently ({current} -> {observed})."
            )

        await self.storage.commit()
        logger.info(
            "order_status_changed",
            user_id=updated.user_id,
            order_id=order_id,
            previous=current,
            status=target,
        )
        return updated

    async def mark_paid(self, order_id: int) -> Order:
        """Move ``pending`` to ``paid``; an order that is already paid is returned as is."""

        order = await self.storage.get_order(order_id, refresh=True)
        if order is None:
            raise NoEligibleOrder(f"Order {order_id} does not exist.")
        if order.status == PAID:
            logger.info("order_already_paid", user_id=order.user_id, order_id=order_id)
            return order
        try:
            return await self.transition(order_id, PAID)
        except InvalidTransition:
            # Lost a race against another payment submission for the same order.
            latest = await self.storage.get_order(order_id, refresh=True)
            if latest is not None and latest.status == PAID:
                return latest
            raise

    async def complete(self, target_user_id: str, actor_id: str) -> Order:
        """Complete the target user's latest paid order on behalf of the admin."""

        if self.admin is None or not await self.admin.is_admin(actor_id):
            logger.warning("order_complete_unauthorized", user_id=actor_id, target=target_user_id)
            raise Unauthorized(f"User {actor_id} is not allowed to complete orders.")

        order = await self.storage.get_latest_order(target_user_id, (PAID,))
        if order is None:
            raise NoEligibleOrder(f"No paid orders found for user {target_user_id}.")

        completed = await self.transition(order.id, COMPLETED)
        logger.info(
            "order_completed",
            admin_id=actor_id,
            user_id=target_user_id,
            order_id=completed.id,
        )
        return completed

    async def cancel(self, order_id: int) -> Order:
        return await self.transition(order_id, CANCELLED)


__all__ = [
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "CANCELLED",
    "COMPLETED",
    "OrderService",
    "PAID",
    "PENDING",
    "TERMINAL_STATUSES",
    "can_transition",
]
