"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and the route modules
(to apply per-route limits with @limiter.limit()). A single shared instance
means all routes share one in-memory counter store.

RATE_LIMIT_ENABLED=false turns every limit off, which the test suite relies on.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=_settings.rate_limit_enabled)

READ_LIMIT = _settings.read_rate_limit
WRITE_LIMIT = _settings.write_rate_limit
