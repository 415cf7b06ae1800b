"""
Tests for the sliding-window rate limiter

Author: TM3
Date: 2026-02-09
"""
import time
from unittest.mock import patch

from markettech.core import rate_limit
from markettech.core.config import settings
from markettech.core.rate_limit import RateLimiter


class TestRateLimiter:

    def test_allows_up_to_the_limit(self):
        limiter = RateLimiter()

        results = [limiter.is_allowed("ip:1", max_requests=3) for _ in range(4)]

        assert [r[0] for r in results] == [True, True, True, False]
        assert [r[1] for r in results[:3]] == [2, 1, 0]
        assert results[3][2] >= 1

    def test_identifiers_are_independent(self):
        limiter = RateLimiter()
        limiter.is_allowed("ip:1", max_requests=1)

        assert limiter.is_allowed("ip:2", max_requests=1)[0]

    def test_window_slides(self):
        limiter = RateLimiter()
        with patch.object(rate_limit.time, "time", return_value=1000.0):
            limiter.is_allowed("ip:1", max_requests=1, window_seconds=60)
            assert limiter.is_allowed("ip:1", max_requests=1, window_seconds=60)[0] is False
        with patch.object(rate_limit.time, "time", return_value=1061.0):
            assert limiter.is_allowed("ip:1", max_requests=1, window_seconds=60)[0] is True

    def test_reset(self):
        limiter = RateLimiter()
        limiter.is_allowed("ip:1", max_requests=1)
        limiter.reset()

        assert limiter.is_allowed("ip:1", max_requests=1)[0]


class TestRateLimitMiddleware:

    def test_unauthenticated_requests_are_limited(self, client):
        with patch.object(settings, "RATE_LIMIT_ENABLED", True), \
                patch.dict(rate_limit.RATE_LIMITS, {"unauthenticated": 2}):
            responses = [client.get("/api/v1/products") for _ in range(3)]

        assert [r.status_code for r in responses] == [200, 200, 429]
        assert responses[0].headers["X-RateLimit-Limit"] == "2"
        assert responses[2].headers["X-RateLimit-Remaining"] == "0"
        body = responses[2].json()
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert body["details"]["retryAfter"] == int(responses[2].headers["Retry-After"])

    def test_exempt_paths(self, client):
        with patch.object(settings, "RATE_LIMIT_ENABLED", True), \
                patch.dict(rate_limit.RATE_LIMITS, {"unauthenticated": 1}):
            responses = [client.get("/health") for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)

    def test_tokens_have_their_own_bucket(self, client, client_headers):
        with patch.object(settings, "RATE_LIMIT_ENABLED", True), \
                patch.dict(rate_limit.RATE_LIMITS, {"unauthenticated": 1}):
            client.get("/api/v1/products")
            anonymous = client.get("/api/v1/products")
            authenticated = client.get("/api/v1/products", headers=client_headers)

        assert anonymous.status_code == 429
        assert authenticated.status_code == 200


class TestLoginRateLimit:
    """Login attempts are limited per IP over a 15 minute window"""

    LOGIN_URL = "/api/v1/auth/login"

    def _bad_login(self, client, email):
        return client.post(self.LOGIN_URL, json={"email": email, "password": "wrong-pass"})

    def test_attempt_after_the_limit_gets_429(self, client, client_user):
        with patch.object(settings, "RATE_LIMIT_ENABLED", True):
            statuses = [self._bad_login(client, client_user.email).status_code
                        for _ in range(settings.LOGIN_RATE_LIMIT)]
            response = self._bad_login(client, client_user.email)

        assert statuses == [401] * settings.LOGIN_RATE_LIMIT
        assert response.status_code == 429
        assert response.json()["detail"] == "Demasiados intentos de inicio de sesión. Intenta de nuevo más tarde."
        assert int(response.headers["Retry-After"]) > 60

    def test_attempts_still_count_after_middleware_cleanup(self, client, client_user):
        # Arrange
        start = time.time()
        with patch.object(settings, "RATE_LIMIT_ENABLED", True):
            for _ in range(settings.LOGIN_RATE_LIMIT):
                self._bad_login(client, client_user.email)

            # Act: three minutes later, ordinary traffic triggers the 60s cleanup
            with patch.object(rate_limit.time, "time", return_value=start + 180):
                client.get("/api/v1/products")
                response = self._bad_login(client, client_user.email)

        # Assert
        assert response.status_code == 429

    def test_short_window_cleanup_keeps_long_window_entries(self):
        limiter = RateLimiter()
        start = time.time()
        with patch.object(rate_limit.time, "time", return_value=start):
            for _ in range(5):
                limiter.is_allowed("login:10.0.0.1", max_requests=5, window_seconds=900)

        with patch.object(rate_limit.time, "time", return_value=start + 180):
            limiter.is_allowed("ip:10.0.0.1", max_requests=100, window_seconds=60)
            allowed, remaining, retry_after = limiter.is_allowed("login:10.0.0.1", max_requests=5, window_seconds=900)

        assert allowed is False
        assert remaining == 0
        assert 700 < retry_after <= 721

    def test_login_and_api_limits_use_separate_buckets(self):
        assert rate_limit.login_limiter is not rate_limit.rate_limiter
