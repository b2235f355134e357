"""License model."""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Date, TIMESTAMP, Index, text
from sqlalchemy.sql import func

from license_server.database import Base


class LicenseStatus(str, enum.Enum):
    """License status enumeration."""
    PENDING = "pending"  # Client request awaiting admin review, no expiry yet
    ACTIVE = "active"
    REJECTED = "rejected"  # Terminal
    INACTIVE = "inactive"  # Disabled by an admin, validates as expired


# Statuses that hold an account/hardware binding
LIVE_STATUSES = (LicenseStatus.ACTIVE.value, LicenseStatus.PENDING.value)

_LIVE_BINDING_PREDICATE = text("status IN ('active', 'pending')")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class License(Base):
    """A license key bound to an account/hardware pair."""

    __tablename__ = "licenses"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    license_key = Column(String(64), unique=True, nullable=False, index=True)

    # Binding
    account_id = Column(String(255), nullable=False)
    account_server = Column(String(255), nullable=True)
    hardware_id = Column(String(255), nullable=False)
    ea_name = Column(String(255), nullable=True)

    # Lifecycle
    expiry_date = Column(Date, nullable=True)  # NULL while pending
    status = Column(String(20), nullable=False, default=LicenseStatus.ACTIVE.value, index=True)

    # Attribution (client requests only)
    requested_by = Column(String(64), nullable=True, index=True)
    requested_email = Column(String(255), nullable=True, index=True)

    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=True)

    __table_args__ = (
        # At most one live license per (account, hardware)
        Index(
            "uq_licenses_live_binding",
            "account_id",
            "hardware_id",
            unique=True,
            postgresql_where=_LIVE_BINDING_PREDICATE,
            sqlite_where=_LIVE_BINDING_PREDICATE,
        ),
        Index("idx_licenses_created_at", "created_at"),
    )

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    def __repr__(self):
        return f"<License(id={self.id}, key={self.license_key}, status={self.status})>"
