"""User attribution from request-scoped context.

The resolver looks for an actor identifier in, in order:

1. the session's ``user_id`` (or ``userId``) field
2. the authenticated principal's ``id``
3. the session's nested ``user`` -> ``id``
4. the ``sub`` claim of a bearer token, when a token verifier is installed
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from starlette.requests import Request


log = structlog.get_logger()

SESSION_USER_KEYS = ("user_id", "userId")
BEARER_PREFIX = "bearer "


class TokenVerifier(Protocol):
    """Capability that decodes and verifies a bearer token.

    Implementations raise on invalid tokens and return the claims
    otherwise.
    """

    def verify(self, token: str) -> Mapping[str, Any]: ...


@dataclass(frozen=True)
class RequestContext:
    """Snapshot of the request data the activity layer reads.

    Taken once when a request arrives so that background work never
    touches the live request object.
    """

    method: str
    entity_type: str | None = None
    path_params: Mapping[str, Any] = field(default_factory=dict)
    session: Mapping[str, Any] | None = None
    principal: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(
        cls,
        request: Request,
        entity_type: str | None = None,
    ) -> "RequestContext":
        """Build a context from a Starlette request.

        The session is read from ``scope["session"]`` (SessionMiddleware)
        and the principal from ``scope["user"]`` (AuthenticationMiddleware)
        or ``request.state.user``.
        """
        session = request.scope.get("session")
        principal = request.scope.get("user")
        if principal is None:
            principal = getattr(request.state, "user", None)

        return cls(
            method=request.method,
            entity_type=entity_type,
            path_params=dict(request.path_params),
            session=dict(session) if isinstance(session, Mapping) else None,
            principal=principal,
            headers={key.lower(): value for key, value in request.headers.items()},
        )

    @property
    def record_id(self) -> str | None:
        """Record identifier from the route, if any."""
        value = self.path_params.get("record_id", self.path_params.get("id"))
        return None if value is None else str(value)


@dataclass(frozen=True)
class Attribution:
    """Outcome of user attribution.

    ``found`` is False when no source yielded an identifier; a found
    attribution always carries a non-empty string ``user_id``.
    """

    user_id: str | None = None
    source: str | None = None

    @property
    def found(self) -> bool:
        return self.user_id is not None

    @classmethod
    def not_found(cls) -> "Attribution":
        return cls()


def _lookup(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    return getattr(container, key, None)


def _as_user_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class UserAttributionResolver:
    """Extract the acting user's ID from a request context.

    Never raises; every failure degrades to ``Attribution.not_found()``.
    """

    def __init__(self, token_verifier: TokenVerifier | None = None) -> None:
        self.token_verifier = token_verifier

    def resolve(self, ctx: RequestContext) -> Attribution:
        """Resolve the actor for a request.

        Args:
            ctx: Request context snapshot

        Returns:
            Attribution with the user ID and the source it came from
        """
        session = ctx.session or {}

        for key in SESSION_USER_KEYS:
            user_id = _as_user_id(session.get(key))
            if user_id:
                return Attribution(user_id=user_id, source="session")

        if ctx.principal is not None:
            user_id = _as_user_id(_lookup(ctx.principal, "id"))
            if user_id:
                return Attribution(user_id=user_id, source="principal")

        session_user = session.get("user")
        if session_user is not None:
            user_id = _as_user_id(_lookup(session_user, "id"))
            if user_id:
                return Attribution(user_id=user_id, source="session_user")

        return self._resolve_from_token(ctx)

    def _resolve_from_token(self, ctx: RequestContext) -> Attribution:
        header = ctx.headers.get("authorization")
        if not header or self.token_verifier is None:
            return Attribution.not_found()

        if not header.lower().startswith(BEARER_PREFIX):
            return Attribution.not_found()

        token = header[len(BEARER_PREFIX):].strip()
        if not token:
            return Attribution.not_found()

        try:
            claims = self.token_verifier.verify(token)
        except Exception as e:
            log.debug("activity_token_rejected", error=str(e))
            return Attribution.not_found()

        user_id = _as_user_id(claims.get("sub") if isinstance(claims, Mapping) else None)
        if user_id:
            return Attribution(user_id=user_id, source="token")
        return Attribution.not_found()
