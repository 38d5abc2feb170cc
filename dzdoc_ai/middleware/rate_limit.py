"""Rate limiting middleware using SlowAPI."""
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

AI_EXECUTE_RATE_LIMIT = "30/minute"
AI_READ_RATE_LIMIT = "100/minute"
FEEDBACK_RATE_LIMIT = "30/minute"
HEALTH_RATE_LIMIT = "200/minute"
