"""
Shared rate limiter for the API routers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from garden_planner.config import settings


limiter = Limiter(key_func=get_remote_address)

DEFAULT_LIMIT = f"{settings.rate_limit_requests}/minute"
