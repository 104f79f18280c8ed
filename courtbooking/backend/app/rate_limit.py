"""
Rate limiting configuration using slowapi.

List endpoints (staff booking list, "my bookings") are throttled per client
IP. ``RATE_LIMIT_ENABLED=false`` switches the limiter off entirely.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings

_settings = get_settings()

limiter = Limiter(key_func=get_remote_address, enabled=_settings.rate_limit_enabled)

# Named rate strings for use in @limiter.limit() decorators
LISTS = _settings.rate_limit_lists
