"""Client account and client session models."""
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, Text, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from license_server.database import Base


class Client(Base):
    """Client account that can request licenses through the portal."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)

    # Stored lower-cased and trimmed
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)

    # Only "active" clients may log in
    status = Column(String(20), nullable=False, default="active")

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    sessions = relationship("ClientSession", back_populates="client", cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self):
        return f"<Client(id={self.id}, email={self.email}, status={self.status})>"


class ClientSession(Base):
    """Session created at client login and checked on every client call."""

    __tablename__ = "client_sessions"

    id = Column(Integer, primary_key=True, index=True)

    session_token = Column(String(255), unique=True, nullable=False)

    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    ip_address = Column(String(45), nullable=True)  # Supports IPv6
    user_agent = Column(Text, nullable=True)

    client = relationship("Client", back_populates="sessions")

    __table_args__ = (
        Index("idx_client_sessions_token", "session_token"),
        Index("idx_client_sessions_client_id", "client_id"),
        Index("idx_client_sessions_expires_at", "expires_at"),
    )

    def __repr__(self):
        return f"<ClientSession(id={self.id}, client_id={self.client_id}, expires_at={self.expires_at})>"
