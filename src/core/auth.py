"""
Session authentication.

Clients present a session token (HS256 JWT) issued by the session service.
The token identifies the session whose cache the request uses, the user's
role and, for patient users, their own NHS number.

Usage:
    from src.core.auth import CurrentSessionDep

    @router.get("/endpoint")
    async def endpoint(session: CurrentSessionDep):
        ...
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from src.settings import get_settings

SESSION_AUTH_ISSUER = "fhir-session"
SESSION_AUTH_AUDIENCE = "fhir-resource-service"


class Role:
    """Session role constants."""

    PHR_USER = "phrUser"
    IDCR = "IDCR"


class SessionTokenPayload(BaseModel):
    """Session token payload."""

    sub: str  # session id
    iss: str
    aud: str
    iat: int
    exp: int
    role: str
    nhs_number: str | None = None


class AuthenticatedSession(BaseModel):
    """The session a request belongs to."""

    session_id: str
    role: str
    nhs_number: str | None = None

    @property
    def is_patient(self) -> bool:
        return self.role == Role.PHR_USER


def verify_session_token(token: str) -> SessionTokenPayload:
    """Verify a session JWT.

    Args:
        token: The JWT token to verify

    Returns:
        The decoded token payload

    Raises:
        HTTPException: If the token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            get_settings().session_jwt_secret,
            algorithms=["HS256"],
            audience=SESSION_AUTH_AUDIENCE,
            issuer=SESSION_AUTH_ISSUER,
            options={"verify_exp": True},
        )
        return SessionTokenPayload(**payload)
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session token has expired",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid session token: {e}",
        ) from e


def create_session_token(
    session_id: str,
    role: str,
    nhs_number: str | None = None,
    expires_hours: int = 1,
) -> str:
    """Create a session JWT.

    Args:
        session_id: Identifier of the client session
        role: Session role (see Role)
        nhs_number: The patient's own NHS number for patient users
        expires_hours: Token validity in hours

    Returns:
        The signed JWT token
    """
    now = datetime.now(timezone.utc)
    expires = now + timedelta(hours=expires_hours)

    payload: dict[str, Any] = {
        "sub": session_id,
        "iss": SESSION_AUTH_ISSUER,
        "aud": SESSION_AUTH_AUDIENCE,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
        "role": role,
    }
    if nhs_number:
        payload["nhs_number"] = nhs_number

    return jwt.encode(payload, get_settings().session_jwt_secret, algorithm="HS256")


def _get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


async def get_current_session(request: Request) -> AuthenticatedSession:
    """Get the session of the current request.

    Raises:
        HTTPException: If no valid session token is found
    """
    token = _get_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Provide a session token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_session_token(token)
    return AuthenticatedSession(
        session_id=payload.sub,
        role=payload.role,
        nhs_number=payload.nhs_number,
    )


# Type alias for dependency injection
CurrentSessionDep = Annotated[AuthenticatedSession, Depends(get_current_session)]
