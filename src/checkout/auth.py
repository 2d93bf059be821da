"""Authenticated identity handed to checkout by the auth collaborator.

Checkout treats authentication as a black box: it receives who the user is
and a bearer token that authorizes backend calls on their behalf.
"""

from collections.abc import Callable, Generator
from contextvars import ContextVar
from dataclasses import dataclass

import httpx

# Bearer token of the request being served
request_token: ContextVar[str | None] = ContextVar("request_token", default=None)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str | None = None
    is_verified: bool = True


class BearerTokenAuth(httpx.Auth):
    """Attach the caller's bearer token to every backend request.

    The token is read lazily so that a refreshed token is picked up between
    requests.
    """

    def __init__(self, token: str | Callable[[], str]) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token() if callable(self._token) else self._token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request
