from dataclasses import dataclass
import os
from dotenv import load_dotenv

from .core.config import BANK_ACCOUNT_HOLDER as _BANK_ACCOUNT_HOLDER
from .core.config import BANK_ACCOUNT_NUMBER as _BANK_ACCOUNT_NUMBER
from .core.config import BANK_NAME as _BANK_NAME
from .core.config import PAYMENT_HOLD_MINUTES as _PAYMENT_HOLD_MINUTES

load_dotenv()


def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)


@dataclass
class BotSettings:
    token: str = _env("TELEGRAM_BOT_TOKEN")
    api_base_url: str = _env("API_BASE_URL", "http://backend:8000/api")
    timezone: str = _env("TIMEZONE", "Asia/Ho_Chi_Minh")
    log_level: str = _env("LOG_LEVEL", "INFO")
    payment_hold_minutes: int = _PAYMENT_HOLD_MINUTES
    bank_name: str = _BANK_NAME
    bank_account_number: str = _BANK_ACCOUNT_NUMBER
    bank_account_holder: str = _BANK_ACCOUNT_HOLDER


def get_settings() -> BotSettings:
    return BotSettings()
