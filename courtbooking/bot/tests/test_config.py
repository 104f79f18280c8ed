from __future__ import annotations

import importlib

import pytest

from courtbooking.bot import config as bot_config
from courtbooking.bot.core import config as core_config


def _load_settings(monkeypatch: pytest.MonkeyPatch, **env: str):
    for key in ("PAYMENT_HOLD_MINUTES", "BANK_NAME", "BANK_ACCOUNT_NUMBER", "BANK_ACCOUNT_HOLDER"):
        monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    importlib.reload(core_config)
    module = importlib.reload(bot_config)
    return module.BotSettings()


@pytest.fixture(autouse=True)
def _restore_modules():
    yield
    importlib.reload(core_config)
    importlib.reload(bot_config)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("API_BASE_URL", raising=False)
    monkeypatch.delenv("TIMEZONE", raising=False)
    settings = _load_settings(monkeypatch)
    assert settings.api_base_url == "http://backend:8000/api"
    assert settings.timezone == "Asia/Ho_Chi_Minh"
    assert settings.payment_hold_minutes == 15


def test_bank_details_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _load_settings(
        monkeypatch,
        BANK_NAME="ACB",
        BANK_ACCOUNT_NUMBER="123456789",
        BANK_ACCOUNT_HOLDER="Nguyen Van A",
        PAYMENT_HOLD_MINUTES="20",
    )
    assert settings.bank_name == "ACB"
    assert settings.bank_account_number == "123456789"
    assert settings.bank_account_holder == "NGUYEN VAN A"
    assert settings.payment_hold_minutes == 20


def test_invalid_hold_minutes(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAYMENT_HOLD_MINUTES", "soon")
    with pytest.raises(RuntimeError):
        importlib.reload(core_config)
    monkeypatch.delenv("PAYMENT_HOLD_MINUTES")
