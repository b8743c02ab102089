"""Telegram handlers for browsing plans, ordering, payment proof and fulfillment."""

from __future__ import annotations

from aiogram import Bot, F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.ext.asyncio import AsyncSession

from shopbot.bot.utils.formatting import extract_command_argument, format_duration, format_price
from shopbot.bot.utils.telegram import (
    answer_callback_with_retry,
    answer_with_retry,
    bot_send_photo_with_retry,
    bot_send_with_retry,
)
from shopbot.config import BotSettings
from shopbot.db.models.core import Plan
from shopbot.i18n import I18nService
from shopbot.logging import logger
from shopbot.services.admin import AdminService
from shopbot.services.exceptions import InvalidPlan, InvalidTransition, NoEligibleOrder, Unauthorized
from shopbot.services.orders import OrderService
from shopbot.services.storage import Storage

router = Router(name="shop")
i18n = I18nService()

SELECT_PLAN_PREFIX = "select_plan:"
SELECT_PLAN_PATTERN = r"^select_plan:\d+$"


def _locale(event: Message | CallbackQuery) -> str | None:
    user = getattr(event, "from_user", None)
    return getattr(user, "language_code", None)


def _plan_name(plan: Plan | None, locale: str | None) -> str:
    return plan.name if plan else i18n.gettext("plan.unknown", locale=locale)


def _plan_amount(plan: Plan | None, locale: str | None) -> str:
    return format_price(plan.price) if plan else i18n.gettext("amount.unknown", locale=locale)


@router.message(CommandStart())
async def handle_start(message: Message) -> None:
    logger.info("user_started_bot", user_id=str(message.from_user.id))
    greeting = i18n.gettext(
        "start.greeting",
        locale=_locale(message),
        name=message.from_user.full_name,
    )
    await answer_with_retry(message, greeting)


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    await answer_with_retry(message, i18n.gettext("help.text", locale=_locale(message)))


@router.message(Command("plans"))
async def handle_plans(message: Message, session: AsyncSession) -> None:
    locale = _locale(message)
    plans = await Storage(session).list_active_plans()
    logger.info("user_requested_plans", user_id=str(message.from_user.id), count=len(plans))
    if not plans:
        await answer_with_retry(message, i18n.gettext("plans.empty", locale=locale))
        return

    builder = InlineKeyboardBuilder()
    for plan in plans:
        builder.button(
            text=i18n.gettext(
                "plans.button",
                locale=locale,
                name=plan.name,
                price=format_price(plan.price),
                duration=format_duration(plan.duration_days),
            ),
            callback_data=f"{SELECT_PLAN_PREFIX}{plan.id}",
        )
    builder.adjust(1)
    await answer_with_retry(
        message,
        i18n.gettext("plans.header", locale=locale),
        reply_markup=builder.as_markup(),
    )


@router.callback_query(F.data.regexp(SELECT_PLAN_PATTERN))
async def handle_select_plan(
    callback: CallbackQuery,
    session: AsyncSession,
    settings: BotSettings,
) -> None:
    locale = _locale(callback)
    user_id = str(callback.from_user.id)
    plan_id = int(callback.data.removeprefix(SELECT_PLAN_PREFIX))
    orders = OrderService(Storage(session))

    try:
        order, plan = await orders.create(user_id, plan_id)
    except InvalidPlan:
        logger.info("plan_selection_unavailable", user_id=user_id, plan_id=plan_id)
        await answer_callback_with_retry(
            callback, i18n.gettext("select.unavailable_callback", locale=locale)
        )
        await answer_with_retry(callback.message, i18n.gettext("select.unavailable", locale=locale))
        return

    await answer_callback_with_retry(
        callback, i18n.gettext("select.callback", locale=locale, name=plan.name)
    )
    await answer_with_retry(
        callback.message,
        i18n.gettext(
            "select.confirmation",
            locale=locale,
            name=plan.name,
            price=format_price(plan.price),
            duration=format_duration(plan.duration_days),
            description=plan.description or "",
            instructions=settings.payment_instructions,
        ),
    )


@router.callback_query()
async def handle_unknown_callback(callback: CallbackQuery) -> None:
    """Stale or malformed buttons still get an answer so the client stops waiting."""

    locale = _locale(callback)
    logger.info("unrecognized_callback", user_id=str(callback.from_user.id), data=callback.data)
    await answer_callback_with_retry(callback)
    if callback.message is not None:
        await answer_with_retry(callback.message, i18n.gettext("fallback.hint", locale=locale))


@router.message(Command("paid"))
async def handle_paid(message: Message, session: AsyncSession) -> None:
    """Mark the active order paid without a screenshot; the admin is not notified."""

    locale = _locale(message)
    user_id = str(message.from_user.id)
    storage = Storage(session)
    orders = OrderService(storage)

    order = await orders.find_active_order(user_id)
    if order is None:
        await answer_with_retry(message, i18n.gettext("paid.no_pending", locale=locale))
        return
    try:
        order = await orders.mark_paid(order.id)
    except (InvalidTransition, NoEligibleOrder):
        await answer_with_retry(message, i18n.gettext("paid.no_pending", locale=locale))
        return

    plan = await storage.get_plan(order.plan_id)
    logger.info("user_marked_order_paid", user_id=user_id, order_id=order.id)
    await answer_with_retry(
        message,
        i18n.gettext("paid.confirmation", locale=locale, plan=_plan_name(plan, locale)),
    )


@router.message(Command("completeorder"))
async def handle_complete_order(
    message: Message,
    session: AsyncSession,
    bot: Bot,
    settings: BotSettings | None = None,
) -> None:
    locale = _locale(message)
    actor_id = str(message.from_user.id)
    storage = Storage(session)
    admin = AdminService(storage, settings)

    if not await admin.is_admin(actor_id):
        logger.warning("non_admin_used_admin_command", user_id=actor_id, command="completeorder")
        await answer_with_retry(message, i18n.gettext("complete.unauthorized", locale=locale))
        return

    target_user_id = extract_command_argument(message.text)
    if not target_user_id:
        await answer_with_retry(message, i18n.gettext("complete.usage", locale=locale))
        return

    try:
        order = await OrderService(storage, admin).complete(target_user_id, actor_id)
    except Unauthorized:
        await answer_with_retry(message, i18n.gettext("complete.unauthorized", locale=locale))
        return
    except (NoEligibleOrder, InvalidTransition):
        await answer_with_retry(
            message,
            i18n.gettext("complete.no_paid", locale=locale, user_id=target_user_id),
        )
        return

    plan = await storage.get_plan(order.plan_id)
    plan_name = _plan_name(plan, locale)
    try:
        await bot_send_with_retry(
            bot,
            chat_id=target_user_id,
            text=i18n.gettext("complete.user_notice", plan=plan_name),
        )
    except Exception as exc:
        logger.error(
            "order_completion_notice_failed",
            user_id=target_user_id,
            order_id=order.id,
            error=str(exc),
        )

    await answer_with_retry(
        message,
        i18n.gettext(
            "complete.admin_reply",
            locale=locale,
            user_id=target_user_id,
            plan=plan_name,
            order_id=order.id,
        ),
    )


@router.message(F.photo)
async def handle_payment_proof(message: Message, session: AsyncSession, bot: Bot) -> None:
    locale = _locale(message)
    user_id = str(message.from_user.id)
    storage = Storage(session)
    orders = OrderService(storage)

    order = await orders.find_active_order(user_id)
    if order is None:
        await answer_with_retry(message, i18n.gettext("proof.no_pending", locale=locale))
        return

    admin_id = await AdminService(storage).get_admin_id()
    if admin_id is None:
        logger.error("payment_proof_admin_missing", user_id=user_id, order_id=order.id)
        await answer_with_retry(message, i18n.gettext("proof.admin_missing", locale=locale))
        return

    try:
        order = await orders.mark_paid(order.id)
    except (InvalidTransition, NoEligibleOrder):
        await answer_with_retry(message, i18n.gettext("proof.no_pending", locale=locale))
        return

    plan = await storage.get_plan(order.plan_id)
    plan_name = _plan_name(plan, locale)
    amount = _plan_amount(plan, locale)
    # Telegram lists photo sizes smallest first.
    photo_id = message.photo[-1].file_id
    logger.info("payment_screenshot_received", user_id=user_id, order_id=order.id)

    try:
        await bot_send_photo_with_retry(
            bot,
            chat_id=admin_id,
            photo=photo_id,
            caption=i18n.gettext(
                "proof.admin_caption",
                user_id=user_id,
                order_id=order.id,
                plan=plan_name,
                amount=amount,
            ),
        )
    except Exception as exc:
        logger.error(
            "payment_screenshot_forward_failed",
            user_id=user_id,
            admin_id=admin_id,
            order_id=order.id,
            error=str(exc),
        )
        await answer_with_retry(message, i18n.gettext("proof.forward_failed", locale=locale))
        return

    await answer_with_retry(
        message,
        i18n.gettext("proof.confirmation", locale=locale, plan=plan_name, amount=amount),
    )


@router.message()
async def handle_fallback(message: Message) -> None:
    logger.debug("unrecognized_message", user_id=str(message.from_user.id))
    await answer_with_retry(message, i18n.gettext("fallback.hint", locale=_locale(message)))


__all__ = [
    "handle_complete_order",
    "handle_fallback",
    "handle_help",
    "handle_paid",
    "handle_payment_proof",
    "handle_plans",
    "handle_select_plan",
    "handle_start",
    "handle_unknown_callback",
    "router",
]
