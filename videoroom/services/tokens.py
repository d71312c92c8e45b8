"""Video access token issuance.

Tokens are minted with the Twilio helper library: an ``AccessToken`` signed
with the account's API key and secret, carrying a ``VideoGrant`` scoped to a
single room. Each call is independent; nothing is cached or persisted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt
from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VideoGrant

from ..core.config import settings

logger = logging.getLogger(__name__)

_CREDENTIAL_ENV_VARS = {
    "twilio_account_sid": "TWILIO_ACCOUNT_SID",
    "twilio_api_key": "TWILIO_API_KEY",
    "twilio_api_secret": "TWILIO_API_SECRET",
}


class TokenServiceError(RuntimeError):
    """Raised when a token cannot be issued."""


class TokenConfigurationError(TokenServiceError):
    """Raised when signing credentials are missing."""


class TokenSigningError(TokenServiceError):
    """Raised when the signing library rejects the grant or the signature."""


@dataclass(slots=True)
class IssuedToken:
    token: str
    identity: str
    room_name: str
    expires_in: int


def _missing_credentials() -> list[str]:
    return [
        env_name
        for field_name, env_name in _CREDENTIAL_ENV_VARS.items()
        if not str(getattr(settings, field_name) or "").strip()
    ]


def issue_token(identity: str, room_name: str) -> IssuedToken:
    """Return a signed token granting ``identity`` access to ``room_name``."""

    missing = _missing_credentials()
    if missing:
        raise TokenConfigurationError(f"Missing signing credentials: {', '.join(missing)}")

    ttl = settings.token_ttl_seconds
    try:
        access_token = AccessToken(
            settings.twilio_account_sid,
            settings.twilio_api_key,
            settings.twilio_api_secret,
            identity=identity,
            ttl=ttl,
        )
        access_token.add_grant(VideoGrant(room=room_name))
        token = access_token.to_jwt()
    except (ValueError, TypeError, jwt.PyJWTError) as exc:
        raise TokenSigningError(f"Could not sign video token: {exc}") from exc

    if isinstance(token, bytes):
        token = token.decode("utf-8")

    logger.info("Issued video token for identity=%s room=%s", identity, room_name)
    return IssuedToken(token=token, identity=identity, room_name=room_name, expires_in=ttl)
