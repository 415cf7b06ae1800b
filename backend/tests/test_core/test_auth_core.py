"""
Unit tests for token and password helpers

Author: TM3
Date: 2026-02-09
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from markettech.core.auth import (
    create_access_token, decode_token, get_current_user, get_current_user_optional,
    hash_password, is_any_admin, verify_password, can_manage_users,
)
from markettech.core.config import settings
from markettech.core.database import utcnow


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestPasswords:

    def test_hash_and_verify(self, password_hash):
        assert password_hash != "secret123"
        assert verify_password("secret123", password_hash)
        assert not verify_password("otra-cosa", password_hash)

    def test_hashes_are_salted(self):
        assert hash_password("abc123") != hash_password("abc123")

    def test_plain_text_stored_password_never_matches(self):
        assert not verify_password("abc123", "abc123")
        assert not verify_password("abc123", "")


class TestTokens:

    def test_round_trip_payload(self):
        token = create_access_token(7, "vendas@markettech.com", "ADMIN_VENDAS", "Equipe de Vendas")

        payload = decode_token(token)

        assert payload["userId"] == 7
        assert payload["role"] == "ADMIN_VENDAS"
        assert payload["name"] == "Equipe de Vendas"

    def test_expiration_is_seven_days(self):
        token = create_access_token(1, "a@b.com", "CLIENT")

        exp = jwt.get_unverified_claims(token)["exp"]
        expires_at = datetime.fromtimestamp(exp, timezone.utc).replace(tzinfo=None)

        assert abs(expires_at - (utcnow() + timedelta(days=7))) < timedelta(minutes=1)

    def test_expired_token(self):
        token = jwt.encode(
            {"userId": 1, "email": "a@b.com", "exp": utcnow() - timedelta(minutes=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    def test_wrong_signature(self):
        token = jwt.encode({"userId": 1, "email": "a@b.com"}, "otro-secreto", algorithm="HS256")

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.detail == "Invalid token"

    def test_payload_without_user_id(self):
        token = jwt.encode({"email": "a@b.com"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_current_user(_bearer(token)))

        assert exc_info.value.status_code == 401

    def test_role_defaults_to_client(self):
        token = jwt.encode({"userId": 3, "email": "a@b.com"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        user = asyncio.run(get_current_user(_bearer(token)))

        assert user.id == 3
        assert user.role == "CLIENT"

    def test_optional_user_ignores_bad_tokens(self):
        assert asyncio.run(get_current_user_optional(None)) is None
        assert asyncio.run(get_current_user_optional(_bearer("basura"))) is None


class TestRoles:

    @pytest.mark.parametrize("role,expected", [
        ("ADMIN", True),
        ("ADMIN_VENDAS", True),
        ("CLIENT", False),
        (None, False),
    ])
    def test_is_any_admin(self, role, expected):
        assert is_any_admin(role) is expected

    def test_only_admin_manages_users(self):
        assert can_manage_users("ADMIN")
        assert not can_manage_users("ADMIN_VENDAS")
