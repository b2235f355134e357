"""Request utility functions."""
from datetime import timezone
from typing import Optional, Tuple
from fastapi import Request


def extract_client_metadata(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract IP address and user agent from request.

    Args:
        request: FastAPI Request object

    Returns:
        Tuple of (ip_address, user_agent)
    """
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    return ip_address, user_agent


def to_epoch_millis(value) -> int:
    """Convert a datetime to epoch milliseconds (the wire format for expiresAt)."""
    if value.tzinfo is None:
        # SQLite hands back naive values; they are stored as UTC
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)
