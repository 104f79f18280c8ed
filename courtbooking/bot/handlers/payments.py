"""Deferred bank-transfer payment view.

The booking payload is held in the chat state until the user confirms the
transfer. Nothing is posted when the user goes back or the hold runs out.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from courtbooking.bot.config import get_settings
from courtbooking.bot.keyboards import (
    back_main_keyboard,
    payment_method_keyboard,
    payment_view_keyboard,
)
from courtbooking.bot.services import api_client
from courtbooking.bot.services.booking_flow import BookingFlow, FlowError, Stage
from courtbooking.bot.services.session import load_session
from courtbooking.bot.states.booking import BookingStates
from courtbooking.bot.utils import texts

from .common import drop_flow, load_flow, safe_edit_message, save_flow

logger = logging.getLogger(__name__)

router = Router()
_settings = get_settings()
_expiry_tasks: set[asyncio.Task] = set()


def _payment_text(flow: BookingFlow) -> str:
    return texts.payment_details(
        flow.grand_total,
        flow.remaining(),
        bank_name=_settings.bank_name,
        account_number=_settings.bank_account_number,
        account_holder=_settings.bank_account_holder,
    )


async def show_payment_view(message: Message, state: FSMContext, flow: BookingFlow) -> None:
    sent = await message.answer(_payment_text(flow), reply_markup=payment_view_keyboard())
    _schedule_expiry(sent, state, flow.deadline)


def _schedule_expiry(message: Message, state: FSMContext, deadline: datetime | None) -> None:
    if deadline is None:
        return
    task = asyncio.create_task(_expire_when_due(message, state, deadline))
    _expiry_tasks.add(task)
    task.add_done_callback(_expiry_tasks.discard)


async def _expire_when_due(message: Message, state: FSMContext, deadline: datetime) -> None:
    delay = (deadline - datetime.now(timezone.utc)).total_seconds()
    await asyncio.sleep(max(delay, 0))
    flow = await load_flow(state)
    # a newer hold or a finished booking owns the state now
    if flow.stage != Stage.payment_pending or flow.deadline != deadline:
        return
    if not flow.check_expiry():
        return
    await drop_flow(state)
    await state.set_state(None)
    try:
        await message.edit_text(texts.PAYMENT_EXPIRED, reply_markup=back_main_keyboard())
    except TelegramBadRequest as exc:
        logger.warning("Could not update expired payment view", extra={"error": str(exc)})


async def _expire(callback: CallbackQuery, state: FSMContext) -> None:
    await drop_flow(state)
    await state.set_state(None)
    await safe_edit_message(callback.message, texts.PAYMENT_EXPIRED, reply_markup=back_main_keyboard())
    await callback.answer(texts.PAYMENT_EXPIRED, show_alert=True)


@router.callback_query(BookingStates.payment, F.data == "payment:refresh")
async def refresh_payment(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await load_flow(state)
    if flow.check_expiry():
        await _expire(callback, state)
        return
    await safe_edit_message(callback.message, _payment_text(flow), reply_markup=payment_view_keyboard())
    await callback.answer()


@router.callback_query(BookingStates.payment, F.data == "payment:confirm")
async def confirm_payment(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await load_flow(state)
    if flow.check_expiry():
        await _expire(callback, state)
        return
    session = await load_session(state)
    try:
        ma_pd = await flow.confirm_payment(api_client, token=session.token)
    except FlowError as exc:
        await save_flow(state, flow)
        await callback.answer(exc.message, show_alert=True)
        if exc.details:
            await callback.message.answer(texts.error_details(exc.message, exc.details))
        return
    total = flow.grand_total
    await drop_flow(state)
    await state.set_state(None)
    await safe_edit_message(callback.message, texts.booking_created(ma_pd, total))
    await callback.answer()


@router.callback_query(BookingStates.payment, F.data == "payment:back")
async def back_from_payment(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await load_flow(state)
    flow.abandon()
    await save_flow(state, flow)
    await state.set_state(BookingStates.choose_payment)
    await safe_edit_message(
        callback.message,
        f"{texts.PAYMENT_BACK}\n\n{texts.CHOOSE_PAYMENT}",
        reply_markup=payment_method_keyboard(),
    )
    await callback.answer()


__all__ = ["router", "show_payment_view"]
