"""
Rate limiting middleware for MarketTech Backend
Uses in-memory storage with sliding window algorithm
"""
import hashlib
import threading
import time
from collections import defaultdict
from typing import Dict, Tuple

from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from markettech.core.config import settings
from markettech.core.errors import CommonErrors


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    For production with multiple instances, consider using Redis.
    """

    def __init__(self):
        # {identifier: [timestamp, ...]}
        self._requests: Dict[str, list] = defaultdict(list)
        self._lock = threading.Lock()
        self._last_cleanup = time.time()
        self._cleanup_interval = 60  # seconds
        self._max_window = 0

    def _cleanup_old_entries(self, window_seconds: int):
        """Remove entries older than twice the largest window in use"""
        self._max_window = max(self._max_window, window_seconds)
        now = time.time()
        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - self._max_window * 2
        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [ts for ts in self._requests[identifier] if ts > cutoff]
            if not self._requests[identifier]:
                del self._requests[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        with self._lock:
            self._cleanup_old_entries(window_seconds)

            now = time.time()
            window_start = now - window_seconds
            in_window = [ts for ts in self._requests[identifier] if ts > window_start]
            self._requests[identifier] = in_window

            if len(in_window) >= max_requests:
                retry_after = int(min(in_window) + window_seconds - now) + 1 if in_window else 1
                return False, 0, retry_after

            in_window.append(now)
            return True, max_requests - len(in_window), 0

    def reset(self):
        with self._lock:
            self._requests.clear()
            self._max_window = 0


# Global rate limiter instances
rate_limiter = RateLimiter()
login_limiter = RateLimiter()


# Rate limit configurations (requests per minute)
RATE_LIMITS = {
    "authenticated": 1000,
    "api_key": 100,
    "unauthenticated": 100,
}

LOGIN_WINDOW_SECONDS = 15 * 60

# Paths that are exempt from rate limiting
EXEMPT_PATHS = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


def get_client_ip(request: Request) -> str:
    """Get the client IP, considering proxies"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware that applies rate limiting based on authentication status.

    Headers returned:
    - X-RateLimit-Limit: Maximum requests per window
    - X-RateLimit-Remaining: Remaining requests in current window
    - X-RateLimit-Reset: Seconds until the window resets (when limited)
    """

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED:
            return await call_next(request)

        if request.url.path in EXEMPT_PATHS or request.url.path.startswith("/api/images/"):
            return await call_next(request)

        # Skip OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        identifier, limit = self._get_identifier_and_limit(request)

        is_allowed, remaining, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=limit,
            window_seconds=60
        )

        if not is_allowed:
            # JSONResponse instead of HTTPException so CORS headers still apply
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=CommonErrors.RATE_LIMIT_EXCEEDED(retry_after).to_dict(),
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(retry_after),
                    "Retry-After": str(retry_after),
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response

    def _get_identifier_and_limit(self, request: Request) -> Tuple[str, int]:
        """
        Priority:
        1. API key (X-API-Key header)
        2. JWT token (Authorization: Bearer header)
        3. IP address (unauthenticated)
        """
        api_key = request.headers.get("X-API-Key")
        if api_key:
            return f"api_key:{api_key[:20]}", RATE_LIMITS["api_key"]

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token_hash = hashlib.sha256(auth_header.encode()).hexdigest()[:32]
            return f"jwt:{token_hash}", RATE_LIMITS["authenticated"]

        return f"ip:{get_client_ip(request)}", RATE_LIMITS["unauthenticated"]


async def login_rate_limit(request: Request):
    """
    Dependency limiting login attempts per client IP.

    Usage:
        @router.post("/login")
        def login(body: LoginRequest, _: None = Depends(login_rate_limit)):
            ...
    """
    if not settings.RATE_LIMIT_ENABLED:
        return

    identifier = f"login:{get_client_ip(request)}"
    is_allowed, _, retry_after = login_limiter.is_allowed(
        identifier=identifier,
        max_requests=settings.LOGIN_RATE_LIMIT,
        window_seconds=LOGIN_WINDOW_SECONDS
    )

    if not is_allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Demasiados intentos de inicio de sesión. Intenta de nuevo más tarde.",
            headers={"Retry-After": str(retry_after)}
        )
