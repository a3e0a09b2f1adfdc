"""
WebSocket identity middleware.

Resolves the identity of a WebSocket session once, at connection time,
and stores it in the scope. Supports the token via query string or
subprotocol, and an optional guest id via query string.

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers
    - authentication/identity.py: Credential verification

Token Passing Methods:
    1. Query string: ws://host/ws/channels/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

Scope keys set:
    identity: authentication.identity.Identity
    credential: authentication.identity.CredentialStatus of the token
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware

from authentication.identity import resolve_identity

logger = logging.getLogger(__name__)

JWT_SUBPROTOCOL = "jwt"


class IdentityMiddleware(BaseMiddleware):
    """
    Identity middleware for WebSocket connections.

    Token sources (in order of precedence):
        1. Query string: ?token=<jwt_token>
        2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

    Never rejects a connection: a missing or bad token yields a guest
    or anonymous identity, and access is checked per channel on join.

    Usage:
        application = ProtocolTypeRouter({
            "websocket": IdentityMiddleware(
                URLRouter(websocket_urlpatterns)
            ),
        })
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        params = self._query_params(scope)

        token = self._first(params, "token") or self._get_token_from_subprotocol(scope)
        identity = resolve_identity(token, guest_id=self._first(params, "guest_id"))
        scope["identity"] = identity
        scope["credential"] = identity.credential

        if token and not identity.is_authenticated:
            logger.info(f"WebSocket credential rejected ({identity.credential.value})")

        return await super().__call__(scope, receive, send)

    @staticmethod
    def _query_params(scope) -> dict[str, list[str]]:
        query_string = scope.get("query_string", b"").decode("latin-1")
        return parse_qs(query_string)

    @staticmethod
    def _first(params: dict[str, list[str]], name: str) -> str | None:
        values = params.get(name, [])
        return values[0] if values else None

    @staticmethod
    def _get_token_from_subprotocol(scope) -> str | None:
        """
        Extract token from WebSocket subprotocol.

        Expects: Sec-WebSocket-Protocol: jwt, <token>
        """
        subprotocols = scope.get("subprotocols", [])

        if len(subprotocols) >= 2 and subprotocols[0] == JWT_SUBPROTOCOL:
            return subprotocols[1]

        return None
