from .client import COMPLETED_URL, REST_URL, SYNC_URL, TodoistClient
from .errors import TodoistAuthError, TodoistClientError, TodoistPayloadError
from .rate_limiter import RateLimiter

__all__ = [
    "TodoistClient",
    "TodoistClientError",
    "TodoistAuthError",
    "TodoistPayloadError",
    "RateLimiter",
    "SYNC_URL",
    "COMPLETED_URL",
    "REST_URL",
]
