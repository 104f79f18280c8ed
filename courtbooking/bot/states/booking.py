from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    choose_date = State()
    choose_start = State()
    choose_end = State()
    choose_slots = State()
    choose_services = State()
    choose_payment = State()
    ask_contact_name = State()
    ask_contact_phone = State()
    payment = State()


class LookupStates(StatesGroup):
    enter_token = State()


class AuthStates(StatesGroup):
    ask_username = State()
    ask_password = State()
    register_username = State()
    register_password = State()
    register_full_name = State()
