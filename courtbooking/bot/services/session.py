"""Per-chat authentication state kept in the FSM storage."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from aiogram.fsm.context import FSMContext

SESSION_KEY = "auth_session"
ADMIN_ROLES = frozenset({"staff", "manager"})


@dataclass
class AuthSession:
    token: str | None = None
    user: dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.user.get("role") in ADMIN_ROLES

    @property
    def user_id(self) -> int | None:
        value = self.user.get("id")
        return value if isinstance(value, int) else None

    @property
    def display_name(self) -> str:
        return str(self.user.get("full_name") or self.user.get("username") or "")

    def to_data(self) -> dict[str, Any]:
        return {"token": self.token, "user": dict(self.user)}

    @classmethod
    def from_data(cls, data: Mapping[str, Any] | None) -> "AuthSession":
        if not data:
            return cls()
        user = data.get("user")
        return cls(token=data.get("token") or None, user=dict(user) if isinstance(user, Mapping) else {})

    @classmethod
    def from_token_response(cls, payload: Mapping[str, Any]) -> "AuthSession":
        user = payload.get("user")
        return cls(
            token=payload.get("access_token"),
            user=dict(user) if isinstance(user, Mapping) else {},
        )


async def load_session(state: FSMContext) -> AuthSession:
    data = await state.get_data()
    return AuthSession.from_data(data.get(SESSION_KEY))


async def save_session(state: FSMContext, session: AuthSession) -> None:
    await state.update_data(**{SESSION_KEY: session.to_data()})


async def clear_session(state: FSMContext) -> None:
    data = await state.get_data()
    data.pop(SESSION_KEY, None)
    await state.set_data(data)


async def reset_conversation(state: FSMContext) -> AuthSession:
    """Drop the current conversation state but keep the login."""
    session = await load_session(state)
    await state.clear()
    if session.is_authenticated:
        await save_session(state, session)
    return session
