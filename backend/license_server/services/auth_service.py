"""Authentication service for client accounts and client sessions."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from license_server.exceptions import DuplicateAccount, ValidationError
from license_server.models.client import Client, ClientSession
from license_server.utils.security import (
    MIN_SESSION_TOKEN_LENGTH,
    generate_session_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Lower-case and trim an email address for storage and lookup."""
    if not email:
        return email
    return email.strip().lower()


class AuthService:
    """Service for handling client authentication and session management."""

    def __init__(self, session: AsyncSession, session_expiry_hours: int = 24):
        """
        Initialize auth service.

        Args:
            session: Database session
            session_expiry_hours: Hours until a client session expires (default 24)
        """
        self.session = session
        self.session_expiry_hours = session_expiry_hours

    async def get_client_by_email(self, email: str) -> Optional[Client]:
        result = await self.session.execute(
            select(Client).where(Client.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def register_client(
        self,
        name: str,
        email: str,
        password: str,
        min_password_length: int = 6
    ) -> Client:
        """
        Create a new active client account.

        Args:
            name: Display name
            email: Email address (stored normalized)
            password: Plain text password, stored as a bcrypt hash
            min_password_length: Minimum accepted password length

        Returns:
            The created Client

        Raises:
            ValidationError: If the password is too short or the name is blank
            DuplicateAccount: If the email is already registered
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name, email, and password are required")
        if len(password) < min_password_length:
            raise ValidationError(
                f"Password must be at least {min_password_length} characters long"
            )

        email = normalize_email(email)
        if await self.get_client_by_email(email) is not None:
            raise DuplicateAccount()

        client = Client(
            email=email,
            name=name,
            password_hash=hash_password(password),
            status="active",
        )
        self.session.add(client)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateAccount()
        await self.session.refresh(client)

        logger.info("Registered client account %s (id=%d)", email, client.id)
        return client

    async def authenticate_client(
        self,
        email: str,
        password: str
    ) -> Optional[Client]:
        """
        Check a client's email and password.

        The account status is not checked here; callers decide how to
        report inactive accounts.

        Args:
            email: Email address
            password: Plain text password

        Returns:
            Client if the credentials match, None otherwise
        """
        client = await self.get_client_by_email(email)

        if not client:
            return None

        if not client.password_hash:
            logger.warning("Client %s has no password hash set", client.id)
            return None

        if not verify_password(password, client.password_hash):
            return None

        return client

    async def create_session(
        self,
        client_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Tuple[str, datetime]:
        """
        Create a new session for a client.

        Args:
            client_id: Client ID
            ip_address: Client IP address
            user_agent: Client user agent string

        Returns:
            Tuple of (session_token, expires_at)
        """
        session_token = generate_session_token()
        expires_at = datetime.now(timezone.utc) + timedelta(hours=self.session_expiry_hours)

        self.session.add(ClientSession(
            session_token=session_token,
            client_id=client_id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        ))
        await self.session.commit()

        return session_token, expires_at

    async def validate_session(
        self,
        session_token: Optional[str]
    ) -> Optional[Client]:
        """
        Validate a client session token and return the associated client.

        Args:
            session_token: Session token to validate

        Returns:
            Client if the session exists, has not expired and belongs to an
            active account; None otherwise
        """
        if not session_token or len(session_token) < MIN_SESSION_TOKEN_LENGTH:
            return None

        result = await self.session.execute(
            select(Client)
            .join(ClientSession, ClientSession.client_id == Client.id)
            .where(
                ClientSession.session_token == session_token,
                ClientSession.expires_at > datetime.now(timezone.utc),
            )
        )
        client = result.scalar_one_or_none()

        if not client or not client.is_active:
            return None

        return client

    async def invalidate_session(
        self,
        session_token: str
    ) -> bool:
        """
        Invalidate a session (logout).

        Args:
            session_token: Session token to invalidate

        Returns:
            True if session was removed, False if not found
        """
        result = await self.session.execute(
            delete(ClientSession).where(ClientSession.session_token == session_token)
        )
        await self.session.commit()

        return (result.rowcount or 0) > 0

    async def cleanup_expired_sessions(self) -> int:
        """
        Remove expired client sessions from the database.

        Returns:
            Number of sessions removed
        """
        now = datetime.now(timezone.utc)
        count_result = await self.session.execute(
            select(func.count(ClientSession.id)).where(ClientSession.expires_at <= now)
        )
        expired_count = count_result.scalar() or 0
        if expired_count == 0:
            return 0

        result = await self.session.execute(
            delete(ClientSession).where(ClientSession.expires_at <= now)
        )
        await self.session.commit()

        return result.rowcount or 0
