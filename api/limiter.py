"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to register the 429 handler) and the route
modules (to apply limits per route).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

Limits are applied with decorators, never by SlowAPIMiddleware: the
middleware finds its target by walking app.routes, which recent FastAPI
releases no longer expose as flat Route objects for included routers.

  api_limit   -- one counter per client IP shared by every /api route
                 (API_RATE_LIMIT, 100 requests per 15 minutes by default)
  login limit -- POST /auth/login additionally counts against
                 LOGIN_RATE_LIMIT (10/minute by default)

Decorator order matters: the router decorator goes on top so FastAPI
registers the rate-limited wrapper, and every decorated handler must take a
`request: Request` parameter.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)


def api_rate_limit() -> str:
    """Limit string for the shared /api budget, read at request time."""
    return get_settings().api_rate_limit


def login_rate_limit() -> str:
    """Limit string for POST /auth/login, read at request time."""
    return get_settings().login_rate_limit


api_limit = limiter.shared_limit(api_rate_limit, scope="api")
