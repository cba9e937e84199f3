# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for identity token verification.

Tokens are signed with python-jose the way the identity provider would
sign them, then checked by TokenVerifier.
"""

import time

import pytest
from jose import jwt

from martialbase.core.config.settings import AuthSettings
from martialbase.domains.auth.jwt import InvalidTokenError, TokenExpiredError, TokenVerifier

SECRET = "test-secret-key-for-jwt-testing"


@pytest.fixture
def auth_settings() -> AuthSettings:
    """Create token settings with a test secret."""
    return AuthSettings(secret_key=SECRET)  # type: ignore[arg-type]


@pytest.fixture
def verifier(auth_settings: AuthSettings) -> TokenVerifier:
    """Create a verifier with test settings."""
    return TokenVerifier(auth_settings)


def _token(claims: dict, secret: str = SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


class TestTokenVerifier:
    """Tests for TokenVerifier."""

    def test_decode_returns_claims(self, verifier: TokenVerifier) -> None:
        """Test that a valid token yields its claims."""
        token = _token({"oid": "subject-1", "exp": int(time.time()) + 300})

        claims = verifier.decode_token(token)

        assert claims["oid"] == "subject-1"

    def test_expired_token_raises(self, verifier: TokenVerifier) -> None:
        """Test that an expired token raises TokenExpiredError."""
        token = _token({"oid": "subject-1", "exp": int(time.time()) - 60})

        with pytest.raises(TokenExpiredError):
            verifier.decode_token(token)

    def test_wrong_signature_raises(self, verifier: TokenVerifier) -> None:
        """Test that a token signed with another key is rejected."""
        token = _token({"oid": "subject-1"}, secret="another-secret")

        with pytest.raises(InvalidTokenError):
            verifier.decode_token(token)

    def test_malformed_token_raises(self, verifier: TokenVerifier) -> None:
        """Test that garbage is rejected."""
        with pytest.raises(InvalidTokenError):
            verifier.decode_token("not-a-token")

    def test_audience_checked_when_configured(self) -> None:
        """Test that the audience claim must match when configured."""
        verifier = TokenVerifier(
            AuthSettings(secret_key=SECRET, audience="martialbase-api")  # type: ignore[arg-type]
        )

        good = _token({"oid": "subject-1", "aud": "martialbase-api"})
        bad = _token({"oid": "subject-1", "aud": "someone-else"})

        assert verifier.decode_token(good)["oid"] == "subject-1"
        with pytest.raises(InvalidTokenError):
            verifier.decode_token(bad)

    def test_verify_token(self, verifier: TokenVerifier) -> None:
        """Test the boolean convenience check."""
        assert verifier.verify_token(_token({"oid": "subject-1"})) is True
        assert verifier.verify_token("not-a-token") is False
