"""Client portal authentication API routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from license_server.api.utils.request import extract_client_metadata, to_epoch_millis
from license_server.config import Settings, get_settings
from license_server.dependencies import (
    CLIENT_SESSION_COOKIE,
    ClientContext,
    get_auth_service,
    get_client_session_token,
    get_current_client,
)
from license_server.exceptions import AccountInactive, InvalidCredentials
from license_server.services.auth_service import AuthService
from license_server.schemas.auth import (
    ClientInfo,
    ClientLoginRequest,
    ClientLoginResponse,
    ClientSignupRequest,
    ClientSignupResponse,
    LogoutResponse,
    SessionStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/client/auth", tags=["Client Authentication"])


@router.post("/signup", response_model=ClientSignupResponse, status_code=201)
async def signup(
    signup_data: ClientSignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new client account.

    Args:
        signup_data: Name, email and password
        auth_service: Auth service instance
        settings: Application settings

    Returns:
        The created account (without credentials)
    """
    client = await auth_service.register_client(
        name=signup_data.name,
        email=signup_data.email,
        password=signup_data.password,
        min_password_length=settings.MIN_PASSWORD_LENGTH,
    )
    return ClientSignupResponse(
        message="Account created successfully. Please login.",
        client=ClientInfo.model_validate(client),
    )


@router.post("/login", response_model=ClientLoginResponse)
async def login(
    login_data: ClientLoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate a client and create a session.

    Raises:
        InvalidCredentials: Unknown email or wrong password
        AccountInactive: The account exists but is not active
    """
    client = await auth_service.authenticate_client(
        email=login_data.email,
        password=login_data.password,
    )
    if not client:
        raise InvalidCredentials("Invalid email or password")

    if not client.is_active:
        logger.info("Login refused for inactive client %d", client.id)
        raise AccountInactive("Your account is not active. Please contact support.")

    ip_address, user_agent = extract_client_metadata(request)
    session_token, expires_at = await auth_service.create_session(
        client_id=client.id,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    response.set_cookie(
        key=CLIENT_SESSION_COOKIE,
        value=session_token,
        httponly=True,
        secure=not settings.DEBUG,  # HTTPS only in production
        samesite="strict",
        max_age=settings.SESSION_EXPIRY_HOURS * 3600,
        path="/",
    )

    logger.info("Client %d logged in", client.id)
    return ClientLoginResponse(
        message="Login successful",
        sessionToken=session_token,
        expiresAt=to_epoch_millis(expires_at),
        client=ClientInfo.model_validate(client),
    )


@router.get("/verify", response_model=SessionStatusResponse)
async def verify(current: ClientContext = Depends(get_current_client)):
    """Return the account behind the current client session."""
    return SessionStatusResponse(
        message="Session is valid",
        client=ClientInfo.model_validate(current.client),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    session_token: Optional[str] = Depends(get_client_session_token),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Delete the client session (if any) and clear the cookie."""
    # Invalidate session if token exists
    if session_token:
        await auth_service.invalidate_session(session_token)

    response.delete_cookie(key=CLIENT_SESSION_COOKIE, path="/")

    return LogoutResponse(message="Logout successful")
