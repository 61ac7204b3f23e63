"""
portal/rate_limit.py
Shared slowapi limiter

Routes decorate with @limiter.limit(...); portal.main attaches it to app.state.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from portal.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
