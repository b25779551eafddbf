"""Rate limiting.

``limiter`` is the slowapi limiter used by route decorators. Login attempts
go through :class:`LoginRateLimiter`, which counts attempts per client id
(not per route) and is injected as a dependency so tests and deployments can
swap its storage.
"""

from functools import lru_cache

from limits import parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from finance_api.config import settings

limiter = Limiter(key_func=get_remote_address, storage_uri=settings.RATE_LIMIT_STORAGE_URI)


class LoginRateLimiter:
    """Moving-window limiter keyed by client id.

    Backed by ``limits`` storage: ``memory://`` is per process and resets on
    restart, ``redis://`` shares counts between workers.
    """

    namespace = "finance-login"

    def __init__(self, rate: str = "5/minute", storage_uri: str = "memory://"):
        self.rate = parse(rate)
        self.storage = storage_from_string(storage_uri)
        self.strategy = MovingWindowRateLimiter(self.storage)

    def check_and_record(self, key: str) -> bool:
        """Record an attempt for ``key``. False once the window is full."""
        return self.strategy.hit(self.rate, self.namespace, key)

    def reset(self) -> None:
        self.storage.reset()


@lru_cache
def get_login_rate_limiter() -> LoginRateLimiter:
    """FastAPI dependency returning the process-wide login limiter."""
    return LoginRateLimiter(settings.LOGIN_RATE_LIMIT, settings.RATE_LIMIT_STORAGE_URI)
