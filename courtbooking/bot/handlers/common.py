from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from aiogram.fsm.context import FSMContext
from aiogram.types import InlineKeyboardMarkup, Message

from courtbooking.bot.config import get_settings
from courtbooking.bot.services.booking_flow import FLOW_KEY, BookingFlow

_settings = get_settings()
_timezone = ZoneInfo(_settings.timezone)


def local_now() -> datetime:
    return datetime.now(_timezone)


def local_today() -> date:
    return local_now().date()


async def safe_edit_message(
    message: Message, text: str, reply_markup: InlineKeyboardMarkup | None = None
) -> None:
    current_text = message.html_text or message.text or ""
    new_markup_dump = reply_markup.model_dump() if reply_markup else None
    existing_markup_dump = (
        message.reply_markup.model_dump() if message.reply_markup else None
    )
    if current_text == text and existing_markup_dump == new_markup_dump:
        return
    await message.edit_text(text, reply_markup=reply_markup)


async def load_flow(state: FSMContext) -> BookingFlow:
    data = await state.get_data()
    return BookingFlow.from_data(data.get(FLOW_KEY), hold_minutes=_settings.payment_hold_minutes)


async def save_flow(state: FSMContext, flow: BookingFlow) -> None:
    await state.update_data(**{FLOW_KEY: flow.to_data()})


async def drop_flow(state: FSMContext) -> None:
    data = await state.get_data()
    data.pop(FLOW_KEY, None)
    await state.set_data(data)
