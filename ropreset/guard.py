"""Bearer-token authentication for the HTTP API.

Requests carry ``Authorization: Bearer <jwt>``. The token is an
HMAC-signed JWT whose ``jti`` claim holds the user id and whose ``sub``
claim holds the user's role.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import jwt

__all__ = [
    "Forbidden",
    "AccessTokenRequest",
    "AccessTokenResponse",
    "UserIdentity",
    "authenticate",
    "user_guard",
]

_ALGORITHMS = ["HS256", "HS384", "HS512"]

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


class Forbidden(Exception):
    """The request carries no valid access token."""

    status_code = 403

    def __init__(self, message: str = "forbidden") -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class AccessTokenRequest:
    """What an access token is issued for."""

    user_agent: str
    user_id: str
    name: str
    created_at: datetime
    role: str


@dataclass(frozen=True)
class AccessTokenResponse:
    """An issued access token and the refresh token that renews it."""

    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class UserIdentity:
    """The user an access token was issued to."""

    user_id: str = ""
    role: str = ""


def authenticate(authorization: str | None, secret: str) -> UserIdentity:
    """Verify the token in an Authorization header value and return its user.

    Raises :class:`Forbidden` when the header has no token or the token is
    invalid, expired or signed with another secret.
    """
    parts = (authorization or "").split(" ")
    if len(parts) < 2:
        raise Forbidden("forbidden")

    try:
        claims = jwt.decode(
            parts[1],
            secret,
            algorithms=_ALGORITHMS,
            options={"verify_aud": False},
        )
    except jwt.PyJWTError as exc:
        raise Forbidden(str(exc)) from exc

    return UserIdentity(
        user_id=str(claims.get("jti") or ""),
        role=str(claims.get("sub") or ""),
    )


def user_guard(app: WSGIApp, secret: str) -> WSGIApp:
    """Wrap a WSGI application so that only authenticated requests reach it.

    The wrapped application finds the user id in ``HTTP_USERID`` and the
    role in ``HTTP_ROLE`` of the environment.
    """

    def guarded(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        try:
            identity = authenticate(environ.get("HTTP_AUTHORIZATION", ""), secret)
        except Forbidden as exc:
            body = f"{exc.message}\n".encode("utf-8")
            start_response(
                "403 Forbidden",
                [
                    ("Content-Type", "text/plain; charset=utf-8"),
                    ("X-Content-Type-Options", "nosniff"),
                    ("Content-Length", str(len(body))),
                ],
            )
            return [body]

        environ["HTTP_USERID"] = identity.user_id
        environ["HTTP_ROLE"] = identity.role
        return app(environ, start_response)

    return guarded