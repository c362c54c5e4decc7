"""
Rate limiting dependencies untuk FastAPI.
Memakai RateLimiter aplikasi (``app.state.rate_limiter``) dengan counting
store yang dikonfigurasi.
"""

from typing import Optional, Callable, Annotated

from fastapi import Request, Response, Depends

from wellauth.api.dependencies.auth import get_auth_context
from wellauth.services.identity import AuthContext
from wellauth.services.rate_limit import RateLimiter, RateLimitConfig, RateLimitResult
from wellauth.utils.network import get_client_ip


def get_rate_limiter(request: Request) -> RateLimiter:
    """RateLimiter milik aplikasi."""
    return request.app.state.rate_limiter


def apply_rate_limit_headers(response: Response, result: Optional[RateLimitResult]) -> None:
    """Tulis header X-RateLimit-* dari hasil paling ketat yang diizinkan."""
    if result is None:
        return
    for name, value in result.headers.items():
        response.headers[name] = value


def _tighter(current: Optional[RateLimitResult], new: RateLimitResult) -> RateLimitResult:
    if current is None or new.remaining < current.remaining:
        return new
    return current


async def enforce_rate_limit(
    request: Request,
    response: Response,
    identifier: str,
    config: RateLimitConfig
) -> RateLimitResult:
    """
    Enforce satu limiter dan catat hasilnya untuk header response.

    Raises:
        RateLimitError: Jika limit terlampaui
    """
    result = await get_rate_limiter(request).enforce(identifier, config)
    request.state.rate_limit = _tighter(getattr(request.state, "rate_limit", None), result)
    apply_rate_limit_headers(response, request.state.rate_limit)
    return result


class RateLimitDependency:
    """
    Rate limiting dependency per client IP.

    Args:
        config: Batas request per window
        namespace: Namespace key
        key_func: Custom function untuk generate rate limit key
    """

    def __init__(
        self,
        config: RateLimitConfig,
        namespace: str = "api",
        key_func: Optional[Callable[[Request], str]] = None
    ):
        self.config = config
        self.namespace = namespace
        self.key_func = key_func or self._default_key_func

    def _default_key_func(self, request: Request) -> str:
        """
        Default key function menggunakan client IP.
        """
        return f"{self.namespace}:ip:{get_client_ip(request)}"

    async def __call__(self, request: Request, response: Response) -> RateLimitResult:
        """
        Raises:
            RateLimitError: Jika rate limit exceeded
        """
        return await enforce_rate_limit(request, response, self.key_func(request), self.config)


class UserRateLimitDependency:
    """
    Rate limiting dependency per user yang terautentikasi.
    """

    def __init__(self, config: RateLimitConfig, namespace: str = "api"):
        self.config = config
        self.namespace = namespace

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Annotated[AuthContext, Depends(get_auth_context)]
    ) -> RateLimitResult:
        """
        Raises:
            RateLimitError: Jika rate limit exceeded
        """
        identifier = f"{self.namespace}:user:{context.user_id}"
        return await enforce_rate_limit(request, response, identifier, self.config)
