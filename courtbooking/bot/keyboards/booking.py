from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Mapping, Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from courtbooking.bot.services.selection import SelectedSlot, SlotSelection, to_minutes
from courtbooking.bot.utils import texts

FIRST_HOUR = 5
LAST_HOUR = 23


def _chunked(sequence: list, size: int) -> list[list]:
    return [sequence[i : i + size] for i in range(0, len(sequence), size)]


def _back_row() -> list[InlineKeyboardButton]:
    return [InlineKeyboardButton(text="Menu chính", callback_data="back_main")]


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00"


def dates_keyboard(today: date, days: int = 14) -> InlineKeyboardMarkup:
    """Only today and later dates are offered."""
    buttons = [
        InlineKeyboardButton(
            text=texts.format_day(today + timedelta(days=offset)),
            callback_data=f"date:{(today + timedelta(days=offset)).isoformat()}",
        )
        for offset in range(days)
    ]
    return InlineKeyboardMarkup(inline_keyboard=[*_chunked(buttons, 2), _back_row()])


def start_hours_keyboard(first: int = FIRST_HOUR, last: int = LAST_HOUR) -> InlineKeyboardMarkup:
    buttons = [
        InlineKeyboardButton(text=hour_label(hour), callback_data=f"start:{hour}")
        for hour in range(first, last)
    ]
    return InlineKeyboardMarkup(inline_keyboard=[*_chunked(buttons, 4), _back_row()])


def end_hours_keyboard(start_hour: int, last: int = LAST_HOUR) -> InlineKeyboardMarkup:
    buttons = [
        InlineKeyboardButton(text=hour_label(hour), callback_data=f"end:{hour}")
        for hour in range(start_hour + 1, last + 1)
    ]
    rows = _chunked(buttons, 4)
    rows.append([InlineKeyboardButton(text="Chọn lại giờ bắt đầu", callback_data="pick_start")])
    rows.append(_back_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def court_slots(court: Mapping, start_time: str, end_time: str) -> list[SelectedSlot]:
    """The whole window first, then its hourly pieces when the window is longer."""
    san_id = int(court["san_id"])
    start_hour, end_hour = to_minutes(start_time) // 60, to_minutes(end_time) // 60
    slots = [SelectedSlot(san_id, start_time, end_time)]
    if end_hour - start_hour > 1:
        slots.extend(
            SelectedSlot(san_id, hour_label(hour), hour_label(hour + 1))
            for hour in range(start_hour, end_hour)
        )
    return slots


def slots_keyboard(
    courts: Sequence[Mapping], start_time: str, end_time: str, selection: SlotSelection
) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    for court in courts:
        name = str(court.get("ten_san") or court.get("ma_san"))
        buttons = []
        for slot in court_slots(court, start_time, end_time):
            mark = "✅ " if slot in selection else ""
            start_hour = to_minutes(slot.start_time) // 60
            end_hour = to_minutes(slot.end_time) // 60
            label = f"{name} {slot.start_time}-{slot.end_time}" if not buttons else f"{slot.start_time[:2]}-{slot.end_time[:2]}h"
            buttons.append(
                InlineKeyboardButton(
                    text=f"{mark}{label}",
                    callback_data=f"toggle:{slot.san_id}:{start_hour}:{end_hour}",
                )
            )
        rows.append(buttons[:1])
        rows.extend(_chunked(buttons[1:], 4))
    rows.append([InlineKeyboardButton(text="Tiếp tục", callback_data="slots_done")])
    rows.append([InlineKeyboardButton(text="Chọn ngày khác", callback_data="book_court")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def services_keyboard(services: Iterable[Mapping], quantities: Mapping[int, int]) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    for service in services:
        service_id = int(service["id"])
        quantity = quantities.get(service_id, 0)
        rows.append(
            [
                InlineKeyboardButton(text="−", callback_data=f"svc:{service_id}:-1"),
                InlineKeyboardButton(
                    text=f"{service.get('ten_dv')} ({quantity})",
                    callback_data=f"svc:{service_id}:0",
                ),
                InlineKeyboardButton(text="+", callback_data=f"svc:{service_id}:1"),
            ]
        )
    rows.append([InlineKeyboardButton(text="Tiếp tục", callback_data="services_done")])
    rows.append([InlineKeyboardButton(text="Quay lại chọn sân", callback_data="back_to_slots")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def payment_method_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=texts.PAYMENT_LABELS[method], callback_data=f"pay_method:{method}"
                )
            ]
            for method in ("cash", "bank_transfer")
        ]
        + [[InlineKeyboardButton(text="Quay lại", callback_data="back_to_services")]]
    )


def payment_view_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Tôi đã chuyển khoản", callback_data="payment:confirm")],
            [InlineKeyboardButton(text="Cập nhật thời gian", callback_data="payment:refresh")],
            [InlineKeyboardButton(text="Quay lại", callback_data="payment:back")],
        ]
    )
