from aiogram import Router

from shopbot.bot.routers import shop


def setup_routers() -> Router:
    router = Router()
    router.include_router(shop.router)
    return router


__all__ = ["setup_routers"]
