"""
Shared rate limiter.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from native_trees.config import settings

limiter = Limiter(key_func=get_remote_address)

SEARCH_RATE_LIMIT = f"{settings.rate_limit_requests}/minute"
