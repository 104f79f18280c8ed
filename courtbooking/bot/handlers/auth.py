from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from courtbooking.bot.keyboards import auth_choice_keyboard, main_menu_keyboard
from courtbooking.bot.services import ApiError, login, register
from courtbooking.bot.services.session import AuthSession, clear_session, reset_conversation, save_session
from courtbooking.bot.states.booking import AuthStates
from courtbooking.bot.utils import texts

from .common import safe_edit_message

logger = logging.getLogger(__name__)

router = Router()

_USERNAME_KEY = "auth_username"
_PASSWORD_KEY = "auth_password"


async def _delete_secret(message: Message) -> None:
    # passwords should not stay in the chat history
    try:
        await message.delete()
    except TelegramBadRequest as exc:
        logger.debug("Could not delete password message", extra={"error": str(exc)})


async def _finish_login(message: Message, state: FSMContext, payload: dict) -> None:
    session = AuthSession.from_token_response(payload)
    await reset_conversation(state)
    await save_session(state, session)
    logger.info("Bot user logged in", extra={"user_id": session.user_id})
    await message.answer(
        texts.logged_in_as(session.display_name), reply_markup=main_menu_keyboard(authenticated=True)
    )


@router.callback_query(F.data == "login")
async def start_login(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(AuthStates.ask_username)
    await safe_edit_message(
        callback.message,
        f"{texts.ASK_USERNAME}\n{texts.REGISTER_PROMPT}",
        reply_markup=auth_choice_keyboard(),
    )
    await callback.answer()


@router.message(AuthStates.ask_username)
async def receive_username(message: Message, state: FSMContext) -> None:
    await state.update_data(**{_USERNAME_KEY: (message.text or "").strip()})
    await state.set_state(AuthStates.ask_password)
    await message.answer(texts.ASK_PASSWORD)


@router.message(AuthStates.ask_password)
async def receive_password(message: Message, state: FSMContext) -> None:
    data = await state.get_data()
    password = message.text or ""
    await _delete_secret(message)
    try:
        payload = await login(data.get(_USERNAME_KEY, ""), password)
    except ApiError as exc:
        await state.set_state(AuthStates.ask_username)
        await message.answer(f"{texts.error_details(exc.message)}\n{texts.ASK_USERNAME}", reply_markup=auth_choice_keyboard())
        return
    await _finish_login(message, state, payload)


@router.callback_query(F.data == "register")
async def start_register(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(AuthStates.register_username)
    await safe_edit_message(callback.message, texts.ASK_USERNAME)
    await callback.answer()


@router.message(AuthStates.register_username)
async def register_username(message: Message, state: FSMContext) -> None:
    await state.update_data(**{_USERNAME_KEY: (message.text or "").strip()})
    await state.set_state(AuthStates.register_password)
    await message.answer(texts.ASK_PASSWORD)


@router.message(AuthStates.register_password)
async def register_password(message: Message, state: FSMContext) -> None:
    await state.update_data(**{_PASSWORD_KEY: message.text or ""})
    await _delete_secret(message)
    await state.set_state(AuthStates.register_full_name)
    await message.answer(texts.ASK_FULL_NAME)


@router.message(AuthStates.register_full_name)
async def register_full_name(message: Message, state: FSMContext) -> None:
    data = await state.get_data()
    try:
        payload = await register(
            data.get(_USERNAME_KEY, ""),
            data.get(_PASSWORD_KEY, ""),
            (message.text or "").strip(),
        )
    except ApiError as exc:
        await state.set_state(AuthStates.register_username)
        await message.answer(texts.error_details(exc.message, exc.details))
        await message.answer(texts.ASK_USERNAME)
        return
    await _finish_login(message, state, payload)


@router.callback_query(F.data == "logout")
async def logout_callback(callback: CallbackQuery, state: FSMContext) -> None:
    await clear_session(state)
    await safe_edit_message(callback.message, texts.LOGOUT_SUCCESS, reply_markup=main_menu_keyboard())
    await callback.answer()


@router.message(Command("logout"))
async def cmd_logout(message: Message, state: FSMContext) -> None:
    await clear_session(state)
    await message.answer(texts.LOGOUT_SUCCESS, reply_markup=main_menu_keyboard())


__all__ = ["router"]
