"""Verification of Google-issued ID tokens."""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import jwt
import requests
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
VALID_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when an ID token cannot be accepted."""


@dataclass(frozen=True)
class Claims:
    """The claims of a verified ID token."""

    aud: str
    exp: int
    iss: str
    sub: str


def fetch_keys(url: str = GOOGLE_CERTS_URL) -> list[dict[str, str]]:
    """Download the RSA signing keys as ``{"n": ..., "e": ...}`` dicts."""
    response = requests.get(url, timeout=10)
    response.raise_for_status()
    return [{"n": key["n"], "e": key["e"]} for key in response.json()["keys"]]


def _b64url_int(text: str) -> int:
    return int.from_bytes(base64.urlsafe_b64decode(text + "=" * (-len(text) % 4)), "big")


def verify_login(id_token: str, client_id: str, keys: Iterable[Mapping[str, str]]) -> Claims:
    """Verify an RS256 ID token against each key in turn and return its claims."""
    for key in keys:
        public_key = RSAPublicNumbers(_b64url_int(key["e"]), _b64url_int(key["n"])).public_key()
        try:
            payload = jwt.decode(
                id_token,
                public_key,
                algorithms=["RS256"],
                audience=client_id,
                leeway=60,
                options={"require": ["exp", "aud", "iss", "sub"]},
            )
            claims = Claims(
                aud=payload["aud"], exp=payload["exp"], iss=payload["iss"], sub=payload["sub"]
            )
        except (jwt.PyJWTError, KeyError) as exc:
            logger.info("decoding failed: %r", exc)
            continue

        if claims.aud != client_id:
            raise AuthError("Invalid client_id")
        if claims.iss not in VALID_ISSUERS:
            raise AuthError("Invalid iss")
        return claims

    raise AuthError("No working key found")