"""JWT creation and verification.

The activity layer only reads tokens: ``JWTTokenVerifier`` is the
optional verification capability handed to the attribution resolver.
``create_access_token`` issues compatible tokens for clients and tests.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt


ACCESS_TOKEN_JTI_LENGTH = 32
DEFAULT_ACCESS_TOKEN_EXPIRE = timedelta(minutes=15)


class JWTTokenVerifier:
    """Verify HMAC-signed JWTs with python-jose.

    Attributes:
        secret_key: Shared signing secret
        algorithms: Accepted signing algorithms
    """

    def __init__(self, secret_key: str, algorithms: list[str] | None = None) -> None:
        self.secret_key = secret_key
        self.algorithms = algorithms or ["HS256"]

    def verify(self, token: str) -> dict[str, Any]:
        """Decode and validate a token.

        Args:
            token: The encoded JWT

        Returns:
            The token claims

        Raises:
            JWTError: If the token is malformed, badly signed or expired
        """
        return jwt.decode(token, self.secret_key, algorithms=self.algorithms)


def create_access_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a short-lived JWT access token.

    Args:
        subject: The user ID placed in the ``sub`` claim
        secret_key: Signing secret
        algorithm: Signing algorithm
        expires_delta: Optional custom expiration time
        additional_claims: Optional extra claims to include

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "exp": now + (expires_delta or DEFAULT_ACCESS_TOKEN_EXPIRE),
        "type": "access",
        "iat": now,
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),  # Unique token ID
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(to_encode, secret_key, algorithm=algorithm)
