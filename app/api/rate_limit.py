"""
Shared rate limiter, keyed by client address.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

limiter = Limiter(key_func=get_remote_address)

UPLOAD_LIMIT = f"{settings.rate_limit_requests}/minute"
