"""
Identity resolution for HTTP requests and WebSocket sessions.

Turns an optional bearer credential (and an optional client-chosen guest id)
into a tagged Identity:

    Authenticated(user_id) | Guest(guest_id) | Anonymous

The resolver is pure: it verifies the JWT signature, expiry and claims
using the djangorestframework-simplejwt signing settings and never touches
the database. A missing or malformed credential is not an error, it simply
yields no identity. An expired but otherwise valid credential is reported
separately so callers can tell the client its session expired.

Guest ids are never verified and must never be used for access control.

Usage:
    from authentication.identity import resolve_identity

    identity = resolve_identity(token, guest_id=request.data.get("guest_id"))
    if identity.is_authenticated:
        ...
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum

import jwt
from rest_framework_simplejwt.settings import api_settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
GUEST_KEY_PREFIX = "GUEST#"
GUEST_ID_MAX_LENGTH = 64


class CredentialStatus(str, Enum):
    VALID = "valid"
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class CredentialCheck:
    """Outcome of verifying a bearer credential."""

    status: CredentialStatus
    user_id: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is CredentialStatus.VALID


class IdentityKind(str, Enum):
    AUTHENTICATED = "authenticated"
    GUEST = "guest"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Identity:
    """
    Who is making a request.

    Attributes:
        kind: Which variant this is
        user_id: Verified user id (AUTHENTICATED only)
        guest_id: Client-chosen pseudo id (GUEST only)
        credential: Status of the presented credential, kept so callers
            can surface an expired session even when falling back to
            guest or anonymous
    """

    kind: IdentityKind
    user_id: str | None = None
    guest_id: str | None = None
    credential: CredentialStatus = CredentialStatus.MISSING

    @classmethod
    def authenticated(cls, user_id: str) -> Identity:
        return cls(
            kind=IdentityKind.AUTHENTICATED,
            user_id=str(user_id),
            credential=CredentialStatus.VALID,
        )

    @classmethod
    def guest(
        cls, guest_id: str, credential: CredentialStatus = CredentialStatus.MISSING
    ) -> Identity:
        return cls(kind=IdentityKind.GUEST, guest_id=guest_id, credential=credential)

    @classmethod
    def anonymous(
        cls, credential: CredentialStatus = CredentialStatus.MISSING
    ) -> Identity:
        return cls(kind=IdentityKind.ANONYMOUS, credential=credential)

    @property
    def is_authenticated(self) -> bool:
        return self.kind is IdentityKind.AUTHENTICATED

    @property
    def is_guest(self) -> bool:
        return self.kind is IdentityKind.GUEST

    @property
    def credential_expired(self) -> bool:
        return self.credential is CredentialStatus.EXPIRED

    @property
    def sender_key(self) -> str | None:
        """Stable sender key: the user id, GUEST#<id> for guests, else None."""
        if self.is_authenticated:
            return self.user_id
        if self.is_guest:
            return f"{GUEST_KEY_PREFIX}{self.guest_id}"
        return None


def _verifying_key():
    # HMAC algorithms have no separate verifying key
    if api_settings.ALGORITHM.startswith("HS"):
        return api_settings.SIGNING_KEY
    return api_settings.VERIFYING_KEY


def check_credential(token: str | None) -> CredentialCheck:
    """
    Verify a bearer access token.

    Never raises for missing or malformed input.

    Returns:
        CredentialCheck with status:
        - MISSING: no token given (None or blank)
        - EXPIRED: signature and shape valid, but past its expiry
        - INVALID: bad signature, wrong token type, malformed payload
        - VALID: user_id carries the verified user id
    """
    if token is None or not str(token).strip():
        return CredentialCheck(CredentialStatus.MISSING)

    try:
        payload = jwt.decode(
            str(token).strip(),
            _verifying_key(),
            algorithms=[api_settings.ALGORITHM],
            audience=api_settings.AUDIENCE,
            issuer=api_settings.ISSUER,
            leeway=api_settings.LEEWAY,
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        return CredentialCheck(CredentialStatus.EXPIRED)
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected credential: {e}")
        return CredentialCheck(CredentialStatus.INVALID)

    if payload.get(api_settings.TOKEN_TYPE_CLAIM) != ACCESS_TOKEN_TYPE:
        return CredentialCheck(CredentialStatus.INVALID)

    user_id = payload.get(api_settings.USER_ID_CLAIM)
    if not isinstance(user_id, str):
        return CredentialCheck(CredentialStatus.INVALID)
    try:
        user_id = str(uuid.UUID(user_id))
    except ValueError:
        return CredentialCheck(CredentialStatus.INVALID)

    return CredentialCheck(CredentialStatus.VALID, user_id=user_id)


def normalize_guest_id(guest_id) -> str | None:
    """Return a usable guest id, or None when blank, oversized or not a string."""
    if not isinstance(guest_id, str):
        return None
    guest_id = guest_id.strip()
    if not guest_id or len(guest_id) > GUEST_ID_MAX_LENGTH:
        return None
    return guest_id


def resolve_identity(token: str | None, guest_id: str | None = None) -> Identity:
    """
    Resolve the identity behind a request.

    A verified credential wins; otherwise a usable guest id gives a guest
    identity; otherwise the caller is anonymous.
    """
    check = check_credential(token)
    if check.is_valid:
        return Identity.authenticated(check.user_id)

    guest_id = normalize_guest_id(guest_id)
    if guest_id is not None:
        return Identity.guest(guest_id, credential=check.status)
    return Identity.anonymous(credential=check.status)


def credential_from_header(header: str | None) -> str | None:
    """
    Extract the token from an Authorization header value.

    Accepts any of the configured AUTH_HEADER_TYPES ("Bearer" by default),
    case-insensitively. Returns None for anything else.
    """
    if not header:
        return None
    parts = header.split()
    if len(parts) != 2:
        return None
    header_types = {t.lower() for t in api_settings.AUTH_HEADER_TYPES}
    if parts[0].lower() not in header_types:
        return None
    return parts[1]
