# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity token verification.

Tokens are issued by the external identity provider. This module only
verifies their signature, expiry and, when configured, audience and
issuer, using python-jose. Interpreting the claims is left to the access
pipeline.

Example:
    >>> from martialbase.core.config import get_settings
    >>> verifier = TokenVerifier(get_settings().auth)
    >>> claims = verifier.decode_token(token)
    >>> claims["oid"]
    '6f1c...'
"""

import logging
from typing import Any

from jose import ExpiredSignatureError, jwt

from martialbase.core.config.settings import AuthSettings

logger = logging.getLogger(__name__)


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class TokenVerifier:
    """Verifies identity tokens and returns their claims.

    Attributes:
        _settings: Token verification settings.
    """

    def __init__(self, settings: AuthSettings) -> None:
        """Initialize the verifier.

        Args:
            settings: Token verification settings.
        """
        self._settings = settings

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and verify a token.

        Args:
            token: Encoded token.

        Returns:
            Verified claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature, audience or issuer is wrong,
                or the token is malformed.
        """
        try:
            return jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
                audience=self._settings.audience,
                issuer=self._settings.issuer,
                options={"verify_aud": self._settings.audience is not None},
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except Exception as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    def verify_token(self, token: str) -> bool:
        """Check whether a token is valid."""
        try:
            self.decode_token(token)
            return True
        except (TokenExpiredError, InvalidTokenError):
            return False
