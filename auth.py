import uuid
from datetime import datetime, timedelta, timezone
from typing import Literal

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from config import (
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_ISSUER,
    JWT_SECRET_KEY,
)


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # email address
    typ: Literal["otp", "login"]  # authentication type
    uid: int | None = None  # user id once the account exists
    exp: datetime | None = None  # expiration time


security = HTTPBearer(auto_error=False)


def create_access_token(
    email: str,
    token_type: Literal["otp", "login"],
    user_id: int | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        email: The user's email address
        token_type: Either "otp" (email ownership proven) or "login"
        user_id: The JourneyCraft user id (optional)
        expires_delta: Custom expiration time (optional)

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": email,
        "typ": token_type,
        "uid": user_id,
        "exp": expire,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }

    return jwt.encode(to_encode, str(JWT_SECRET_KEY), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            str(JWT_SECRET_KEY),
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
        return TokenPayload(**payload)
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid authentication credentials",
        )


async def get_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> TokenPayload:
    """
    Dependency to get and validate the current JWT token.

    Raises:
        HTTPException: If authorization header is missing or token is invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authenticated",
        )

    return decode_token(credentials.credentials)


async def require_otp(
    token: TokenPayload = Depends(get_current_token),
) -> TokenPayload:
    """Dependency that requires a token issued after OTP verification."""
    if token.typ != "otp":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email verification required",
        )
    return token


async def require_login(
    token: TokenPayload = Depends(get_current_token),
) -> TokenPayload:
    """Dependency that requires login authentication (not OTP)."""
    if token.typ != "login" or token.uid is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Login authentication required",
        )
    return token


def verify_email_ownership(token: TokenPayload, email: str) -> None:
    """
    Verify that the OTP token was issued for the given email.

    Raises:
        HTTPException: If the token belongs to a different address
    """
    if token.sub != email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email does not match the verified address",
        )
