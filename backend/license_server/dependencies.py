"""FastAPI dependencies for authentication and authorization.

Admin and client callers present an opaque bearer token, either in a cookie
(``admin_session`` / ``client_session``) or in an ``Authorization: Bearer``
header. Admin tokens are self-contained signed tokens; client tokens must
match a live row in ``client_sessions``.
"""
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from license_server.config import Settings, get_settings
from license_server.database import get_db
from license_server.exceptions import Unauthorized
from license_server.models.client import Client
from license_server.services.auth_service import AuthService
from license_server.utils.security import resolve_secret_key, verify_admin_session_token

ADMIN_SESSION_COOKIE = "admin_session"
CLIENT_SESSION_COOKIE = "client_session"


@dataclass
class ClientContext:
    """Authenticated client identity handed to client routes."""

    client: Client
    session_token: str

    @property
    def client_id(self) -> int:
        return self.client.id

    @property
    def email(self) -> str:
        return self.client.email


def extract_session_token(request: Request, cookie_name: str) -> Optional[str]:
    """
    Extract a session token from the named cookie, falling back to the
    Authorization header.

    Args:
        request: Incoming request
        cookie_name: Cookie holding the token

    Returns:
        Session token or None
    """
    token = request.cookies.get(cookie_name)
    if token:
        return token

    authorization = request.headers.get("authorization")
    if authorization:
        token = authorization.replace("Bearer ", "", 1).strip()
        return token or None

    return None


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> AuthService:
    """
    Dependency to get auth service.

    Args:
        db: Database session
        settings: Application settings

    Returns:
        AuthService instance
    """
    return AuthService(
        session=db,
        session_expiry_hours=settings.SESSION_EXPIRY_HOURS
    )


async def get_admin_session_token(request: Request) -> Optional[str]:
    return extract_session_token(request, ADMIN_SESSION_COOKIE)


async def get_client_session_token(request: Request) -> Optional[str]:
    return extract_session_token(request, CLIENT_SESSION_COOKIE)


async def get_current_admin(
    session_token: Optional[str] = Depends(get_admin_session_token),
    settings: Settings = Depends(get_settings)
) -> str:
    """
    Require a valid admin session.

    Args:
        session_token: Token from cookie or Authorization header
        settings: Application settings

    Returns:
        The verified admin session token

    Raises:
        Unauthorized: If the token is missing, malformed, forged or expired
    """
    valid = verify_admin_session_token(
        session_token,
        resolve_secret_key(settings.SECRET_KEY),
        max_age_seconds=settings.SESSION_EXPIRY_HOURS * 3600,
    )
    if not valid:
        raise Unauthorized()
    return session_token


async def get_current_client(
    session_token: Optional[str] = Depends(get_client_session_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> ClientContext:
    """
    Require a valid client session.

    Args:
        session_token: Token from cookie or Authorization header
        auth_service: Auth service instance

    Returns:
        ClientContext for the authenticated client

    Raises:
        Unauthorized: If there is no live session for the token
    """
    if not session_token:
        raise Unauthorized()

    client = await auth_service.validate_session(session_token)
    if not client:
        raise Unauthorized("Session expired or invalid")

    return ClientContext(client=client, session_token=session_token)
