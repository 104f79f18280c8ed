"""Environment-based configuration for bank-transfer payments."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv


load_dotenv()


@dataclass(slots=True, frozen=True)
class _BankTransferConfig:
    """Account details shown on the deferred-payment view."""

    bank_name: str
    account_number: str
    account_holder: str
    hold_minutes: int

    @classmethod
    def from_env(cls) -> "_BankTransferConfig":
        """Create a configuration instance from environment variables."""

        hold_raw = (os.getenv("PAYMENT_HOLD_MINUTES") or "15").strip()
        try:
            hold_minutes = int(hold_raw)
        except ValueError as exc:
            raise RuntimeError(
                f"PAYMENT_HOLD_MINUTES must be an integer, got {hold_raw!r}."
            ) from exc
        if hold_minutes <= 0:
            raise RuntimeError("PAYMENT_HOLD_MINUTES must be positive.")

        return cls(
            bank_name=(os.getenv("BANK_NAME") or "Vietcombank").strip(),
            account_number=(os.getenv("BANK_ACCOUNT_NUMBER") or "").strip(),
            account_holder=(os.getenv("BANK_ACCOUNT_HOLDER") or "").strip().upper(),
            hold_minutes=hold_minutes,
        )


_CONFIG: Final[_BankTransferConfig] = _BankTransferConfig.from_env()

BANK_NAME: Final[str] = _CONFIG.bank_name
BANK_ACCOUNT_NUMBER: Final[str] = _CONFIG.account_number
BANK_ACCOUNT_HOLDER: Final[str] = _CONFIG.account_holder
PAYMENT_HOLD_MINUTES: Final[int] = _CONFIG.hold_minutes


__all__ = ["BANK_NAME", "BANK_ACCOUNT_NUMBER", "BANK_ACCOUNT_HOLDER", "PAYMENT_HOLD_MINUTES"]
