"""Bearer token handling used for user attribution."""

from activity_logger.core.auth.tokens import JWTTokenVerifier, create_access_token


__all__ = [
    "JWTTokenVerifier",
    "create_access_token",
]
