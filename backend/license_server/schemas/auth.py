"""Pydantic schemas for admin and client authentication."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AdminLoginRequest(BaseModel):
    """Admin login request schema."""

    password: str = Field(..., min_length=1, description="Admin password")


class AdminLoginResponse(BaseModel):
    """Admin login response schema."""

    success: bool = True
    message: str
    sessionToken: str
    expiresAt: int  # Epoch milliseconds


class ClientSignupRequest(BaseModel):
    """Client signup request schema."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class ClientLoginRequest(BaseModel):
    """Client login request schema."""

    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class ClientInfo(BaseModel):
    """Public view of a client account."""

    id: int
    email: str
    name: str

    model_config = {
        "from_attributes": True
    }


class ClientSignupResponse(BaseModel):
    success: bool = True
    message: str
    client: ClientInfo


class ClientLoginResponse(BaseModel):
    success: bool = True
    message: str
    sessionToken: str
    expiresAt: int  # Epoch milliseconds
    client: ClientInfo


class SessionStatusResponse(BaseModel):
    """Response of the /verify endpoints."""

    authenticated: bool = True
    message: str
    client: Optional[ClientInfo] = None


class LogoutResponse(BaseModel):
    success: bool = True
    message: str
