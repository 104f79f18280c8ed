from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from courtbooking.bot.keyboards import back_main_keyboard, main_menu_keyboard
from courtbooking.bot.services import ApiError, fetch_bookings, fetch_my_bookings
from courtbooking.bot.services.session import load_session, reset_conversation
from courtbooking.bot.utils import texts

from .common import safe_edit_message

logger = logging.getLogger(__name__)

router = Router()


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext) -> None:
    session = await reset_conversation(state)
    await message.answer(
        texts.MAIN_MENU, reply_markup=main_menu_keyboard(authenticated=session.is_authenticated)
    )


@router.message(Command("menu"))
async def cmd_menu(message: Message, state: FSMContext) -> None:
    await cmd_start(message, state)


@router.callback_query(F.data == "back_main")
async def back_to_main(callback: CallbackQuery, state: FSMContext) -> None:
    session = await reset_conversation(state)
    await safe_edit_message(
        callback.message,
        texts.MAIN_MENU,
        reply_markup=main_menu_keyboard(authenticated=session.is_authenticated),
    )
    await callback.answer()


@router.callback_query(F.data == "my_bookings")
async def show_my_bookings(callback: CallbackQuery, state: FSMContext) -> None:
    session = await load_session(state)
    if not session.is_authenticated:
        await callback.answer(texts.LOGIN_REQUIRED, show_alert=True)
        return
    try:
        if session.is_admin:
            bookings = await fetch_bookings(session.token)
        else:
            bookings = await fetch_my_bookings(session.token)
    except ApiError as exc:
        logger.info("Booking history failed", extra={"status": exc.status})
        await callback.answer(exc.message or texts.API_ERROR, show_alert=True)
        return
    await safe_edit_message(
        callback.message, texts.bookings_list(bookings), reply_markup=back_main_keyboard()
    )
    await callback.answer()


__all__ = ["router"]
