"""Factories and Telegram doubles shared by the test modules."""

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

from shopbot.db.models.core import BotConfig, ChatUser, Order, Plan


async def add_plan(session, **overrides) -> Plan:
    values = {
        "name": "Basic Monthly",
        "description": "Standard VPN service for 1 month",
        "duration_days": 30,
        "price": 4200,
        "plan_type": "basic",
        "is_active": True,
    }
    values.update(overrides)
    plan = Plan(**values)
    session.add(plan)
    await session.flush()
    return plan


async def add_user(session, telegram_id: str = "1001", **overrides) -> ChatUser:
    user = ChatUser(telegram_id=telegram_id, username=overrides.get("username", f"user{telegram_id}"))
    session.add(user)
    await session.flush()
    return user


async def add_order(
    session,
    user_id: str,
    plan_id: int,
    *,
    status: str = "pending",
    created_at: datetime | None = None,
) -> Order:
    order = Order(user_id=user_id, plan_id=plan_id, status=status)
    if created_at is not None:
        order.created_at = created_at
    session.add(order)
    await session.flush()
    return order


async def set_admin(session, admin_id: str | None) -> BotConfig:
    config = BotConfig(admin_id=admin_id)
    session.add(config)
    await session.flush()
    return config


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DummyFromUser:
    def __init__(
        self,
        user_id: int = 1001,
        full_name: str = "Test User",
        language_code: str = "en",
    ) -> None:
        self.id = user_id
        self.username = f"user{user_id}"
        self.first_name = full_name.split()[0]
        self.last_name = " ".join(full_name.split()[1:]) or None
        self.full_name = full_name
        self.language_code = language_code


class DummyMessage:
    def __init__(
        self,
        text: str | None = None,
        from_user: DummyFromUser | None = None,
        *,
        photo: list | None = None,
    ) -> None:
        self.text = text
        self.from_user = from_user or DummyFromUser()
        self.photo = photo
        self.chat = SimpleNamespace(id=self.from_user.id, type="private")
        self.answers: list[tuple[str, dict]] = []

    async def answer(self, text: str, **kwargs):
        self.answers.append((text, kwargs))
        return text


class DummyCallback:
    def __init__(self, data: str, from_user: DummyFromUser | None = None) -> None:
        self.data = data
        self.from_user = from_user or DummyFromUser()
        self.message = DummyMessage(from_user=self.from_user)
        self.acks: list[str | None] = []

    async def answer(self, text: str | None = None, **kwargs):
        self.acks.append(text)
        return True


class DummyBot:
    def __init__(self, *, fail_photo: bool = False, fail_message: bool = False) -> None:
        self.fail_photo = fail_photo
        self.fail_message = fail_message
        self.sent_messages: list[dict] = []
        self.sent_photos: list[dict] = []

    async def send_message(self, chat_id, text, **kwargs):
        if self.fail_message:
            raise RuntimeError("chat not reachable")
        self.sent_messages.append({"chat_id": chat_id, "text": text, **kwargs})
        return True

    async def send_photo(self, chat_id, photo, caption=None, **kwargs):
        if self.fail_photo:
            raise RuntimeError("photo upload failed")
        self.sent_photos.append({"chat_id": chat_id, "photo": photo, "caption": caption})
        return True


def photo_sizes(*file_ids: str) -> list[SimpleNamespace]:
    return [SimpleNamespace(file_id=file_id) for file_id in file_ids]


def stub_settings(**overrides) -> SimpleNamespace:
    values = {
        "default_language": "en",
        "admin_id": None,
        "payment_instructions": "Pay to account 42",
        "request_limit": SimpleNamespace(max_requests=30, interval_seconds=60),
        "health": SimpleNamespace(interval_minutes=5, probe_timeout_seconds=1.0),
        "logging": SimpleNamespace(level="info", detailed=True, retention=500),
        "environment": "dev",
    }
    values.update(overrides)
    return SimpleNamespace(**values)
