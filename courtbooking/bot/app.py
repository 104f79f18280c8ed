import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from courtbooking.bot.config import get_settings
from courtbooking.bot.handlers import auth, booking, lookup, menu, payments
from courtbooking.bot.middlewares.logging import LoggingMiddleware


def build_dispatcher() -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())
    dp.message.middleware(LoggingMiddleware())
    dp.callback_query.middleware(LoggingMiddleware())
    # menu first so /start always wins over an open conversation
    dp.include_router(menu.router)
    dp.include_router(auth.router)
    dp.include_router(lookup.router)
    dp.include_router(booking.router)
    dp.include_router(payments.router)
    return dp


async def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    bot = Bot(
        settings.token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = build_dispatcher()

    await bot.set_my_commands(
        [
            BotCommand(command="start", description="Menu chính"),
            BotCommand(command="lookup", description="Tra cứu phiếu đặt sân"),
            BotCommand(command="logout", description="Đăng xuất"),
        ]
    )

    await dp.start_polling(bot)


if __name__ == "__main__":
    asyncio.run(main())
