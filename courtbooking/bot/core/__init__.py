"""Core utilities and configuration for the Telegram bot."""

from .config import BANK_ACCOUNT_HOLDER, BANK_ACCOUNT_NUMBER, BANK_NAME, PAYMENT_HOLD_MINUTES

__all__ = ["BANK_ACCOUNT_HOLDER", "BANK_ACCOUNT_NUMBER", "BANK_NAME", "PAYMENT_HOLD_MINUTES"]
