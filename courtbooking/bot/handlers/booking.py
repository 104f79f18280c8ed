from __future__ import annotations

import logging
import re
from datetime import date

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

from courtbooking.bot.keyboards import (
    dates_keyboard,
    end_hours_keyboard,
    payment_method_keyboard,
    services_keyboard,
    slots_keyboard,
    start_hours_keyboard,
)
from courtbooking.bot.keyboards.booking import FIRST_HOUR, LAST_HOUR, hour_label
from courtbooking.bot.services import api_client
from courtbooking.bot.services.api_client import ApiError
from courtbooking.bot.services.booking_flow import BookingFlow, FlowError, Stage
from courtbooking.bot.services.selection import SelectedSlot
from courtbooking.bot.services.session import load_session
from courtbooking.bot.states.booking import BookingStates
from courtbooking.bot.utils import texts

from . import payments
from .common import drop_flow, load_flow, local_now, local_today, safe_edit_message, save_flow

logger = logging.getLogger(__name__)

router = Router()

_PHONE_RE = re.compile(r"^[0-9]{10,11}$")
_DAY_KEY = "search_day"
_START_KEY = "search_start"
_SERVICES_KEY = "services_catalogue"


def _court_names(flow: BookingFlow) -> dict[int, str]:
    return {int(court["san_id"]): str(court.get("ten_san") or court.get("ma_san")) for court in flow.availability}


def _pricing_block(flow: BookingFlow) -> str:
    if flow.errors:
        return texts.error_details("", flow.errors)
    if flow.pricing:
        return texts.pricing_summary(flow.pricing, _court_names(flow))
    return ""


def _slots_view(flow: BookingFlow) -> tuple[str, InlineKeyboardMarkup]:
    parts = [
        texts.availability_summary(flow.day, flow.start_time, flow.end_time, flow.availability),
        "",
        texts.CHOOSE_SLOTS,
    ]
    block = _pricing_block(flow)
    if block:
        parts.extend(["", block])
    markup = slots_keyboard(flow.available_courts(), flow.start_time, flow.end_time, flow.selection)
    return "\n".join(parts), markup


def _services_view(flow: BookingFlow, services: list[dict]) -> tuple[str, InlineKeyboardMarkup]:
    lines = [texts.CHOOSE_SERVICES]
    for service in services:
        unit = " / giờ" if service.get("loai") == "rent" else ""
        lines.append(f"{service.get('ten_dv')}: {texts.format_money(service.get('don_gia'))}{unit}")
    block = _pricing_block(flow)
    if block:
        lines.extend(["", block])
    return "\n".join(lines), services_keyboard(services, flow.services)


async def _reprice(flow: BookingFlow) -> None:
    try:
        await flow.reprice(api_client)
    except FlowError as exc:
        logger.info("Pricing rejected", extra={"error": exc.message})


async def _ask_start(message: Message, state: FSMContext, day: date) -> None:
    first = FIRST_HOUR
    if day == local_today():
        first = max(FIRST_HOUR, local_now().hour + 1)
    await state.set_state(BookingStates.choose_start)
    await safe_edit_message(
        message,
        f"{texts.format_day(day)}\n{texts.CHOOSE_START}",
        reply_markup=start_hours_keyboard(first, LAST_HOUR),
    )


@router.callback_query(F.data == "book_court")
async def start_booking(callback: CallbackQuery, state: FSMContext) -> None:
    await drop_flow(state)
    await state.set_state(BookingStates.choose_date)
    await safe_edit_message(
        callback.message, texts.CHOOSE_DATE, reply_markup=dates_keyboard(local_today())
    )
    await callback.answer()


@router.callback_query(BookingStates.choose_date, F.data.startswith("date:"))
async def choose_date(callback: CallbackQuery, state: FSMContext) -> None:
    try:
        day = date.fromisoformat(callback.data.split(":", 1)[1])
    except ValueError:
        await callback.answer(texts.API_ERROR, show_alert=True)
        return
    if day < local_today():
        await callback.answer("Không thể đặt sân cho ngày trong quá khứ", show_alert=True)
        return
    if day == local_today() and local_now().hour + 1 >= LAST_HOUR:
        await callback.answer(texts.NO_COURTS_AVAILABLE, show_alert=True)
        return
    await state.update_data(**{_DAY_KEY: day.isoformat()})
    await _ask_start(callback.message, state, day)
    await callback.answer()


@router.callback_query(BookingStates.choose_end, F.data == "pick_start")
async def pick_start_again(callback: CallbackQuery, state: FSMContext) -> None:
    data = await state.get_data()
    await _ask_start(callback.message, state, date.fromisoformat(data[_DAY_KEY]))
    await callback.answer()


@router.callback_query(BookingStates.choose_start, F.data.startswith("start:"))
async def choose_start(callback: CallbackQuery, state: FSMContext) -> None:
    hour = int(callback.data.split(":", 1)[1])
    await state.update_data(**{_START_KEY: hour})
    await state.set_state(BookingStates.choose_end)
    data = await state.get_data()
    day = date.fromisoformat(data[_DAY_KEY])
    await safe_edit_message(
        callback.message,
        f"{texts.format_day(day)} · {hour_label(hour)}\n{texts.CHOOSE_END}",
        reply_markup=end_hours_keyboard(hour),
    )
    await callback.answer()


@router.callback_query(BookingStates.choose_end, F.data.startswith("end:"))
async def choose_end(callback: CallbackQuery, state: FSMContext) -> None:
    data = await state.get_data()
    day = date.fromisoformat(data[_DAY_KEY])
    start_time = hour_label(int(data[_START_KEY]))
    end_time = hour_label(int(callback.data.split(":", 1)[1]))

    flow = await load_flow(state)
    try:
        await flow.search(api_client, day, start_time, end_time, today=local_today())
    except FlowError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    except ApiError as exc:
        await callback.answer(exc.message or texts.API_ERROR, show_alert=True)
        return
    await save_flow(state, flow)

    if not flow.available_courts():
        summary = texts.availability_summary(day, start_time, end_time, flow.availability)
        await safe_edit_message(
            callback.message,
            f"{summary}\n\n{texts.NO_COURTS_AVAILABLE}",
            reply_markup=InlineKeyboardMarkup(
                inline_keyboard=[
                    [InlineKeyboardButton(text="Chọn lại", callback_data="book_court")],
                    [InlineKeyboardButton(text="Menu chính", callback_data="back_main")],
                ]
            ),
        )
        await callback.answer()
        return

    await state.set_state(BookingStates.choose_slots)
    text, markup = _slots_view(flow)
    await safe_edit_message(callback.message, text, reply_markup=markup)
    await callback.answer()


@router.callback_query(BookingStates.choose_slots, F.data.startswith("toggle:"))
async def toggle_slot(callback: CallbackQuery, state: FSMContext) -> None:
    try:
        _, san_id, start_hour, end_hour = callback.data.split(":")
        slot = SelectedSlot(int(san_id), hour_label(int(start_hour)), hour_label(int(end_hour)))
    except ValueError:
        await callback.answer(texts.API_ERROR, show_alert=True)
        return
    flow = await load_flow(state)
    flow.toggle_slot(slot)
    await _reprice(flow)
    await save_flow(state, flow)
    text, markup = _slots_view(flow)
    await safe_edit_message(callback.message, text, reply_markup=markup)
    await callback.answer()


async def _show_services(callback: CallbackQuery, state: FSMContext, flow: BookingFlow) -> None:
    data = await state.get_data()
    services = data.get(_SERVICES_KEY)
    if services is None:
        try:
            services = await api_client.fetch_services()
        except ApiError as exc:
            await callback.answer(exc.message or texts.API_ERROR, show_alert=True)
            return
        await state.update_data(**{_SERVICES_KEY: services})
    await state.set_state(BookingStates.choose_services)
    text, markup = _services_view(flow, services)
    await safe_edit_message(callback.message, text, reply_markup=markup)
    await callback.answer()


@router.callback_query(BookingStates.choose_slots, F.data == "slots_done")
async def slots_done(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await load_flow(state)
    if not len(flow.selection):
        await callback.answer(texts.NO_SLOT_SELECTED, show_alert=True)
        return
    if flow.pricing is None:
        await callback.answer(flow.errors[0] if flow.errors else texts.API_ERROR, show_alert=True)
        return
    await _show_services(callback, state, flow)


@router.callback_query(BookingStates.choose_services, F.data == "back_to_slots")
async def back_to_slots(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await load_flow(state)
    await state.set_state(BookingStates.choose_slots)
    text, markup = _slots_view(flow)
    await safe_edit_message(callback.message, text, reply_markup=markup)
    await callback.answer()


@router.callback_query(BookingStates.choose_services, F.data.startswith("svc:"))
async def change_service(callback: CallbackQuery, state: FSMContext) -> None:
    _, service_id, delta = callback.data.split(":")
    if delta == "0":
        await callback.answer()
        return
    flow = await load_flow(state)
    flow.change_service(int(service_id), int(delta))
    await _reprice(flow)
    await save_flow(state, flow)
    data = await state.get_data()
    text, markup = _services_view(flow, data.get(_SERVICES_KEY) or [])
    await safe_edit_message(callback.message, text, reply_markup=markup)
    await callback.answer()


@router.callback_query(BookingStates.choose_services, F.data == "services_done")
async def services_done(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await load_flow(state)
    if flow.stage != Stage.price_confirmed:
        await callback.answer(flow.errors[0] if flow.errors else texts.API_ERROR, show_alert=True)
        return
    await state.set_state(BookingStates.choose_payment)
    await safe_edit_message(
        callback.message,
        f"{_pricing_block(flow)}\n\n{texts.CHOOSE_PAYMENT}",
        reply_markup=payment_method_keyboard(),
    )
    await callback.answer()


@router.callback_query(BookingStates.choose_payment, F.data == "back_to_services")
async def back_to_services(callback: CallbackQuery, state: FSMContext) -> None:
    await _show_services(callback, state, await load_flow(state))


@router.callback_query(BookingStates.choose_payment, F.data.startswith("pay_method:"))
async def choose_payment_method(callback: CallbackQuery, state: FSMContext) -> None:
    method = callback.data.split(":", 1)[1]
    if method not in texts.PAYMENT_LABELS:
        await callback.answer(texts.API_ERROR, show_alert=True)
        return
    flow = await load_flow(state)
    flow.payment_method = method
    await save_flow(state, flow)
    await callback.answer()

    session = await load_session(state)
    if not session.is_authenticated:
        await state.set_state(BookingStates.ask_contact_name)
        await callback.message.answer(texts.ASK_CONTACT_NAME)
        return
    await submit_booking(callback.message, state, flow)


@router.message(BookingStates.ask_contact_name)
async def save_contact_name(message: Message, state: FSMContext) -> None:
    name = (message.text or "").strip()
    if not name:
        await message.answer(texts.CONTACT_NAME_INVALID)
        return
    flow = await load_flow(state)
    flow.contact["contact_name"] = name
    await save_flow(state, flow)
    await state.set_state(BookingStates.ask_contact_phone)
    await message.answer(texts.ASK_CONTACT_PHONE)


@router.message(BookingStates.ask_contact_phone)
async def save_contact_phone(message: Message, state: FSMContext) -> None:
    phone = re.sub(r"[\s.-]", "", message.text or "")
    if not _PHONE_RE.match(phone):
        await message.answer(texts.CONTACT_PHONE_INVALID)
        return
    flow = await load_flow(state)
    flow.contact["contact_phone"] = phone
    await save_flow(state, flow)
    await submit_booking(message, state, flow)


async def submit_booking(message: Message, state: FSMContext, flow: BookingFlow) -> None:
    session = await load_session(state)
    try:
        ma_pd = await flow.submit(api_client, token=session.token)
    except FlowError as exc:
        await save_flow(state, flow)
        await state.set_state(BookingStates.choose_slots)
        text, markup = _slots_view(flow)
        await message.answer(texts.error_details(exc.message, exc.details))
        await message.answer(text, reply_markup=markup)
        return

    if ma_pd is None:
        await save_flow(state, flow)
        await state.set_state(BookingStates.payment)
        await payments.show_payment_view(message, state, flow)
        return

    total = flow.grand_total
    await drop_flow(state)
    await state.set_state(None)
    await message.answer(texts.booking_created(ma_pd, total))


__all__ = ["router", "submit_booking"]
