from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup


def lookup_result_keyboard(ma_pd: str, *, cancellable: bool) -> InlineKeyboardMarkup:
    rows = []
    if cancellable:
        rows.append([InlineKeyboardButton(text="Hủy phiếu đặt", callback_data=f"cancel_booking:{ma_pd}")])
    rows.append([InlineKeyboardButton(text="Tra cứu mã khác", callback_data="lookup")])
    rows.append([InlineKeyboardButton(text="Menu chính", callback_data="back_main")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def cancel_confirm_keyboard(ma_pd: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="Xác nhận hủy", callback_data=f"cancel_yes:{ma_pd}"),
                InlineKeyboardButton(text="Không", callback_data=f"lookup_show:{ma_pd}"),
            ]
        ]
    )


def auth_choice_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Đăng ký", callback_data="register")],
            [InlineKeyboardButton(text="Menu chính", callback_data="back_main")],
        ]
    )
