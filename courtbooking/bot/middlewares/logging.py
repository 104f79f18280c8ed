import logging
from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = getattr(event, "from_user", None)
        if isinstance(event, CallbackQuery):
            logger.info(
                "Incoming callback",
                extra={"user_id": user.id if user else None, "callback_data": event.data},
            )
        elif isinstance(event, Message):
            logger.info("Incoming message", extra={"user_id": user.id if user else None})
        return await handler(event, data)
