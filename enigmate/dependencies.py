from typing import Optional, Union
import json
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from enigmate.config import SUPABASE_JWT_SECRET, SUPABASE_JWT_PUBLIC_KEY as RAW_PUBLIC_KEY, SUPABASE_JWT_AUDIENCE

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def load_public_key(raw: str) -> Optional[Union[str, dict]]:
    """ES256 verification key from the environment: a PEM string or a JWK object."""
    raw = raw.strip()
    if raw.startswith("-----BEGIN"):
        # .env files usually carry the PEM on one line with literal \n
        return raw.replace("\\n", "\n")
    if raw.startswith("{"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("[Auth] SUPABASE_JWT_PUBLIC_KEY is not valid JWK JSON, falling back to HS256")
    return None


SUPABASE_JWT_PUBLIC_KEY = load_public_key(RAW_PUBLIC_KEY)


class SupabaseUser(BaseModel):
    """Represents an authenticated Supabase user."""
    id: str  # UUID as string
    email: str
    username: str
    auth_provider: str = "email"
    is_verified: bool = False


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_supabase_token(token: str) -> dict:
    """Verify a Supabase access token; ES256 when a public key is configured, else HS256."""
    if SUPABASE_JWT_PUBLIC_KEY:
        return jwt.decode(
            token,
            SUPABASE_JWT_PUBLIC_KEY,
            algorithms=["ES256"],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    return jwt.decode(
        token,
        SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        audience=SUPABASE_JWT_AUDIENCE,
    )


def user_from_claims(payload: dict) -> SupabaseUser:
    user_id = payload.get("sub")
    if not user_id:
        raise _credentials_error("Invalid token")

    email = payload.get("email") or ""
    user_metadata = payload.get("user_metadata") or {}
    app_metadata = payload.get("app_metadata") or {}
    username = (
        user_metadata.get("username")
        or user_metadata.get("full_name")
        or email.split("@")[0]
        or user_id
    )

    return SupabaseUser(
        id=user_id,
        email=email,
        username=username,
        auth_provider=app_metadata.get("provider", "email"),
        is_verified=payload.get("email_confirmed_at") is not None
        or bool(user_metadata.get("email_verified")),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SupabaseUser:
    """Get the current authenticated user from the Supabase JWT."""
    if not credentials:
        raise _credentials_error("Not authenticated")

    try:
        payload = decode_supabase_token(credentials.credentials)
    except JWTError as e:
        logger.info("[Auth] Rejected token: %s", e)
        raise _credentials_error("Could not validate credentials")

    return user_from_claims(payload)


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Optional[SupabaseUser]:
    """Get the current user if authenticated, None otherwise."""
    if not credentials:
        return None

    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None
