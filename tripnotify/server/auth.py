"""Clerk RS256 JWT verification via JWKS, and the FastAPI auth dependency.

Clerk's public keys are fetched from the well-known JWKS endpoint and cached
in-process for CLERK_JWKS_CACHE_TTL seconds.
"""

import time

import httpx
import sentry_sdk
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from tripnotify.core.config import settings

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=True)

# {"jwks": ..., "fetched_at": timestamp}
_jwks_cache: dict[str, object] = {}


class CurrentUser(BaseModel):
    """Identity extracted from a verified Clerk JWT."""

    user_id: str  # Clerk user ID (e.g. "user_2x...")
    session_id: str | None = None


async def _fetch_jwks() -> dict:
    """Return cached JWKS if fresh, else fetch from Clerk."""
    cached = _jwks_cache.get("jwks")
    fetched_at = _jwks_cache.get("fetched_at", 0.0)
    if cached and time.time() - float(fetched_at) < settings.CLERK_JWKS_CACHE_TTL:
        return cached  # type: ignore[return-value]

    jwks_url = f"{settings.CLERK_ISSUER_URL}/.well-known/jwks.json"
    async with httpx.AsyncClient() as client:
        response = await client.get(jwks_url, timeout=10.0)
        response.raise_for_status()
        jwks = response.json()

    _jwks_cache["jwks"] = jwks
    _jwks_cache["fetched_at"] = time.time()
    logger.info("clerk_jwks_refreshed", keys_count=len(jwks.get("keys", [])))
    return jwks


def _get_signing_key(jwks: dict, token: str) -> dict:
    """Match the JWT header's kid to the correct JWKS key."""
    unverified_header = jwt.get_unverified_header(token)
    kid = unverified_header.get("kid")
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    raise JWTError(f"No matching key found for kid={kid}")


async def verify_clerk_token(token: str) -> dict:
    """
    Verify a Clerk-issued RS256 JWT.

    Returns the decoded payload with claims (sub, sid, ...).
    Raises JWTError on any validation failure.
    """
    jwks = await _fetch_jwks()
    signing_key = _get_signing_key(jwks, token)

    return jwt.decode(
        token,
        signing_key,
        algorithms=["RS256"],
        issuer=settings.CLERK_ISSUER_URL,
        options={
            "verify_aud": False,  # Clerk does not set aud by default
            "verify_iss": bool(settings.CLERK_ISSUER_URL),
            "verify_exp": True,
        },
    )


def clear_jwks_cache() -> None:
    _jwks_cache.clear()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:
    """Verify the bearer token and return the caller's identity."""
    try:
        payload = await verify_clerk_token(credentials.credentials)
    except (JWTError, httpx.HTTPError) as e:
        logger.warning("jwt_verification_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject claim",
        )

    sentry_sdk.set_user({"id": user_id})
    return CurrentUser(user_id=user_id, session_id=payload.get("sid"))
