from .main import back_main_keyboard, main_menu_keyboard
from .booking import (
    dates_keyboard,
    end_hours_keyboard,
    payment_method_keyboard,
    payment_view_keyboard,
    services_keyboard,
    slots_keyboard,
    start_hours_keyboard,
)
from .lookup import auth_choice_keyboard, cancel_confirm_keyboard, lookup_result_keyboard

__all__ = [
    "main_menu_keyboard",
    "back_main_keyboard",
    "dates_keyboard",
    "start_hours_keyboard",
    "end_hours_keyboard",
    "slots_keyboard",
    "services_keyboard",
    "payment_method_keyboard",
    "payment_view_keyboard",
    "lookup_result_keyboard",
    "cancel_confirm_keyboard",
    "auth_choice_keyboard",
]
