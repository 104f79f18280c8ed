from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from courtbooking.bot.keyboards import back_main_keyboard, cancel_confirm_keyboard, lookup_result_keyboard
from courtbooking.bot.services import lookup
from courtbooking.bot.services.session import load_session
from courtbooking.bot.states.booking import LookupStates
from courtbooking.bot.utils import texts

from .common import safe_edit_message

logger = logging.getLogger(__name__)

router = Router()


def _result_view(detail: dict):
    ma_pd = str(detail["booking"]["ma_pd"])
    return texts.booking_detail(detail), lookup_result_keyboard(
        ma_pd, cancellable=lookup.can_cancel(detail)
    )


async def _answer_lookup(message: Message, state: FSMContext, raw_token: str | None) -> None:
    try:
        detail = await lookup.find_booking(raw_token)
    except lookup.BookingLookupError as exc:
        await message.answer(exc.message, reply_markup=back_main_keyboard())
        return
    await state.set_state(None)
    text, markup = _result_view(detail)
    await message.answer(text, reply_markup=markup)


@router.callback_query(F.data == "lookup")
async def ask_token(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(LookupStates.enter_token)
    await safe_edit_message(callback.message, texts.ASK_LOOKUP_TOKEN, reply_markup=back_main_keyboard())
    await callback.answer()


@router.message(Command("lookup"))
async def cmd_lookup(message: Message, state: FSMContext, command: CommandObject) -> None:
    if not command.args:
        await state.set_state(LookupStates.enter_token)
        await message.answer(texts.ASK_LOOKUP_TOKEN, reply_markup=back_main_keyboard())
        return
    await _answer_lookup(message, state, command.args)


@router.message(LookupStates.enter_token)
async def receive_token(message: Message, state: FSMContext) -> None:
    await _answer_lookup(message, state, message.text)


@router.callback_query(F.data.startswith("lookup_show:"))
async def show_booking(callback: CallbackQuery) -> None:
    try:
        detail = await lookup.find_booking(callback.data.split(":", 1)[1])
    except lookup.BookingLookupError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    text, markup = _result_view(detail)
    await safe_edit_message(callback.message, text, reply_markup=markup)
    await callback.answer()


@router.callback_query(F.data.startswith("cancel_booking:"))
async def ask_cancel(callback: CallbackQuery) -> None:
    ma_pd = callback.data.split(":", 1)[1]
    await safe_edit_message(callback.message, texts.CANCEL_CONFIRM, reply_markup=cancel_confirm_keyboard(ma_pd))
    await callback.answer()


@router.callback_query(F.data.startswith("cancel_yes:"))
async def cancel_booking(callback: CallbackQuery, state: FSMContext) -> None:
    ma_pd = callback.data.split(":", 1)[1]
    session = await load_session(state)
    try:
        await lookup.cancel(ma_pd, auth_token=session.token)
    except lookup.BookingLookupError as exc:
        logger.info("Cancellation rejected", extra={"ma_pd": ma_pd, "status": exc.status})
        await callback.answer(exc.message, show_alert=True)
        return
    await callback.answer(texts.CANCEL_SUCCESS)
    try:
        detail = await lookup.find_booking(ma_pd)
    except lookup.BookingLookupError:
        await safe_edit_message(callback.message, texts.CANCEL_SUCCESS, reply_markup=back_main_keyboard())
        return
    text, markup = _result_view(detail)
    await safe_edit_message(callback.message, f"{texts.CANCEL_SUCCESS}\n\n{text}", reply_markup=markup)


__all__ = ["router"]
