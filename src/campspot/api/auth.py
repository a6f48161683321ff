"""OIDC JWT authentication.

Identity is an external collaborator: the bearer token is verified against the
issuer's JWKS and its claims become the Actor the reservation service trusts.

Provides:
- verify_token(): Validates JWT and returns its claims
- get_current_actor(): FastAPI dependency for the authenticated caller
- require_admin(): FastAPI dependency restricting a route to admins
"""

from __future__ import annotations

import os
import threading
import time
from typing import Any

import jwt
import requests
from fastapi import Depends, HTTPException, Request

from campspot.domain.errors import ValidationError
from campspot.domain.models import Actor, Role, parse_role

# JWKS cache with TTL
_jwks_cache: dict[str, Any] | None = None
_jwks_cache_time: float = 0
_jwks_cache_lock = threading.Lock()
_JWKS_CACHE_TTL = 600  # 10 minutes


def _get_settings() -> dict[str, Any]:
    """Load OIDC settings from environment."""
    authorized_parties_raw = os.environ.get("OIDC_AUTHORIZED_PARTIES", "")
    authorized_parties: list[str] | None = None
    if authorized_parties_raw:
        authorized_parties = [p.strip() for p in authorized_parties_raw.split(",") if p.strip()]

    return {
        "issuer": os.environ.get("OIDC_ISSUER"),
        "audience": os.environ.get("OIDC_AUDIENCE"),
        "jwks_url": os.environ.get("OIDC_JWKS_URL"),
        "authorized_parties": authorized_parties,
        "role_claim": os.environ.get("OIDC_ROLE_CLAIM", "role"),
    }


def _fetch_jwks(jwks_url: str) -> dict[str, Any]:
    """Fetch JWKS from URL."""
    resp = requests.get(jwks_url, timeout=10)
    resp.raise_for_status()
    return resp.json()


def _get_jwks(jwks_url: str, force_refresh: bool = False) -> dict[str, Any]:
    """Get JWKS with caching."""
    global _jwks_cache, _jwks_cache_time

    with _jwks_cache_lock:
        now = time.time()
        if not force_refresh and _jwks_cache is not None and (now - _jwks_cache_time) < _JWKS_CACHE_TTL:
            return _jwks_cache

        try:
            _jwks_cache = _fetch_jwks(jwks_url)
        except requests.RequestException:
            raise HTTPException(status_code=503, detail="Auth temporarily unavailable")
        _jwks_cache_time = now
        return _jwks_cache


def _find_key(jwks: dict[str, Any], kid: str) -> dict[str, Any] | None:
    """Find key by kid in JWKS."""
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


def verify_token(token: str) -> dict[str, Any]:
    """Verify JWT and return its claims.

    Args:
        token: JWT token string.

    Returns:
        Decoded claims (``sub`` guaranteed present).

    Raises:
        HTTPException: 401 if token is invalid, 503 if the JWKS is unreachable.
    """
    settings = _get_settings()

    issuer = settings["issuer"]
    audience = settings["audience"]
    jwks_url = settings["jwks_url"]

    if not issuer or not audience or not jwks_url:
        raise HTTPException(status_code=401, detail="OIDC not configured")

    try:
        unverified_header = jwt.get_unverified_header(token)
    except jwt.exceptions.DecodeError:
        raise HTTPException(status_code=401, detail="Invalid token")

    kid = unverified_header.get("kid")
    if not kid:
        raise HTTPException(status_code=401, detail="Invalid token")

    jwks = _get_jwks(jwks_url)
    key_data = _find_key(jwks, kid)

    # Unknown kid: keys may have rotated, refresh once
    if key_data is None:
        jwks = _get_jwks(jwks_url, force_refresh=True)
        key_data = _find_key(jwks, kid)

    if key_data is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        public_key = jwt.algorithms.RSAAlgorithm.from_jwk(key_data)
    except (jwt.InvalidKeyError, ValueError, KeyError):
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            issuer=issuer,
            audience=audience,
            options={"require": ["exp", "iss", "aud", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    authorized_parties = settings["authorized_parties"]
    if authorized_parties and "azp" in payload:
        if payload["azp"] not in authorized_parties:
            raise HTTPException(status_code=401, detail="Invalid token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload


def _extract_bearer_token(request: Request) -> str:
    """Extract Bearer token from Authorization header.

    Raises:
        HTTPException: 401 if header missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return parts[1]


def actor_from_claims(claims: dict[str, Any], role_claim: str = "role") -> Actor:
    """Build the Actor from verified claims. A missing role means USER."""
    raw_role = claims.get(role_claim)
    if raw_role is None:
        return Actor(id=str(claims["sub"]), role=Role.USER)
    try:
        role = parse_role(raw_role)
    except ValidationError:
        raise HTTPException(status_code=403, detail="Unknown role")
    return Actor(id=str(claims["sub"]), role=role)


def get_current_actor(request: Request) -> Actor:
    """FastAPI dependency: get the authenticated caller.

    Raises:
        HTTPException: 401 if token invalid/missing, 403 if role unknown.
    """
    token = _extract_bearer_token(request)
    claims = verify_token(token)
    return actor_from_claims(claims, _get_settings()["role_claim"])


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return actor
