"""
Request rate limiting shared by the API routers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from dm_core.config import settings

limiter = Limiter(key_func=get_remote_address)

SEND_LIMIT = f"{settings.rate_limit_per_minute}/minute"
REACTION_LIMIT = f"{settings.reaction_rate_limit_per_minute}/minute"
