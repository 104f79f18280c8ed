from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def main_menu_keyboard(*, authenticated: bool = False) -> InlineKeyboardMarkup:
    auth_button = (
        InlineKeyboardButton(text="Đăng xuất", callback_data="logout")
        if authenticated
        else InlineKeyboardButton(text="Đăng nhập", callback_data="login")
    )
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Đặt sân", callback_data="book_court")],
            [InlineKeyboardButton(text="Tra cứu phiếu đặt", callback_data="lookup")],
            [InlineKeyboardButton(text="Lịch sử đặt sân", callback_data="my_bookings")],
            [auth_button],
        ]
    )


def back_main_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="Menu chính", callback_data="back_main")]]
    )
