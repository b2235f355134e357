"""License lifecycle service.

Owns every business rule for license records: key and binding uniqueness,
client requests, approval (with auto-reject of conflicting requests),
rejection, updates, deletion and the product-facing validation check.

Uniqueness is enforced twice. Pre-checks produce precise errors that name the
conflicting license; the unique indexes on ``license_key`` and on live
(account_id, hardware_id) pairs catch anything that races past them, and
their violations are reported as the same Duplicate* errors. Any other
store failure is rolled back and raised as StoreError.
"""
import functools
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from sqlalchemy import select, delete, func, and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from license_server.exceptions import (
    AutoRejectedDuplicate,
    DuplicateBinding,
    DuplicateKey,
    DuplicatePending,
    LicenseServerError,
    NotFound,
    StoreError,
    ValidationError,
)
from license_server.models.license import License, LicenseStatus, LIVE_STATUSES
from license_server.utils.security import generate_license_key

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Current UTC calendar date, used for expiry checks."""
    return datetime.now(timezone.utc).date()


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise ValidationError("All fields are required", missingFields=missing)


def _coerce_status(status: Union[LicenseStatus, str, None]) -> str:
    if status is None or status == "":
        return LicenseStatus.ACTIVE.value
    try:
        return LicenseStatus(status).value
    except ValueError:
        allowed = ", ".join(s.value for s in LicenseStatus)
        raise ValidationError(f"Invalid status '{status}'. Allowed: {allowed}")


def store_operation(func):
    """Roll back and raise StoreError for store failures escaping an operation."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Database error in %s: %s", func.__name__, e)
            raise StoreError("Database operation failed") from e
    return wrapper


class LicenseService:
    """License lifecycle operations against the license store."""

    def __init__(self, session: AsyncSession, key_prefix: str = "ALGO"):
        self.session = session
        self.key_prefix = key_prefix

    # ── Lookups ─────────────────────────────────────────────────

    async def get_license(self, license_key: str) -> Optional[License]:
        result = await self.session.execute(
            select(License).where(License.license_key == license_key)
        )
        return result.scalar_one_or_none()

    async def _get_pending(self, license_key: str) -> Optional[License]:
        result = await self.session.execute(
            select(License).where(
                License.license_key == license_key,
                License.status == LicenseStatus.PENDING.value,
            )
        )
        return result.scalar_one_or_none()

    async def find_live_binding(
        self,
        account_id: str,
        hardware_id: str,
        exclude_key: Optional[str] = None,
    ) -> Optional[License]:
        """Return the active/pending license holding this account/hardware pair, if any."""
        q = select(License).where(
            License.account_id == str(account_id),
            License.hardware_id == hardware_id,
            License.status.in_(LIVE_STATUSES),
        )
        if exclude_key is not None:
            q = q.where(License.license_key != exclude_key)
        # Active wins over pending when legacy data holds both
        q = q.order_by((License.status == LicenseStatus.ACTIVE.value).desc(), License.id).limit(1)
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    # ── Store constraint handling ───────────────────────────────

    async def _commit_unique(
        self,
        license_key: str,
        account_id: str,
        hardware_id: str,
        key_is_new: bool,
    ) -> None:
        """Commit, translating unique index violations into Duplicate* errors."""
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise await self._duplicate_error(license_key, account_id, hardware_id, key_is_new)

    async def _duplicate_error(
        self,
        license_key: str,
        account_id: str,
        hardware_id: str,
        key_is_new: bool,
    ) -> LicenseServerError:
        if key_is_new and await self.get_license(license_key) is not None:
            return DuplicateKey(license_key)
        conflict = await self.find_live_binding(account_id, hardware_id, exclude_key=license_key)
        logger.warning(
            "Unique constraint rejected license %s for account=%s hardware=%s",
            license_key, account_id, hardware_id,
        )
        if conflict is None:
            return DuplicateBinding(account_id, hardware_id)
        return DuplicateBinding(account_id, hardware_id, conflict.license_key, conflict.status)

    # ── Admin creation ──────────────────────────────────────────

    @store_operation
    async def create_license(
        self,
        license_key: Optional[str],
        account_id: Optional[str],
        account_server: Optional[str],
        hardware_id: Optional[str],
        ea_name: Optional[str],
        expiry_date: Optional[date],
        status: Union[LicenseStatus, str, None] = None,
    ) -> License:
        """Create a license directly (admin path). Status defaults to active."""
        _require(
            licenseKey=license_key,
            accountId=account_id,
            accountServer=account_server,
            hardwareId=hardware_id,
            ea_name=ea_name,
            expiryDate=expiry_date,
        )
        account_id = str(account_id)
        status = _coerce_status(status)

        if await self.get_license(license_key) is not None:
            raise DuplicateKey(license_key)

        if status in LIVE_STATUSES:
            conflict = await self.find_live_binding(account_id, hardware_id)
            if conflict is not None:
                raise DuplicateBinding(account_id, hardware_id, conflict.license_key, conflict.status)

        record = License(
            license_key=license_key,
            account_id=account_id,
            account_server=account_server,
            hardware_id=hardware_id,
            ea_name=ea_name,
            expiry_date=expiry_date,
            status=status,
        )
        self.session.add(record)
        await self._commit_unique(license_key, account_id, hardware_id, key_is_new=True)
        await self.session.refresh(record)

        logger.info("Created license %s (status=%s, expiry=%s)", license_key, status, expiry_date)
        return record

    # ── Client requests ─────────────────────────────────────────

    @store_operation
    async def request_license(
        self,
        account_id: Optional[str],
        account_server: Optional[str],
        ea_name: Optional[str],
        hardware_id: Optional[str],
        client_id: Optional[int] = None,
        client_email: Optional[str] = None,
    ) -> License:
        """
        Record a client's license request as pending.

        The key is always generated here. An existing active license for the
        same account/hardware pair raises DuplicateBinding, an existing
        pending request raises DuplicatePending; rejected or inactive
        licenses do not block a new request.
        """
        _require(
            accountId=account_id,
            accountServer=account_server,
            ea_name=ea_name,
            hardwareId=hardware_id,
        )
        account_id = str(account_id)

        existing = await self.find_live_binding(account_id, hardware_id)
        if existing is not None:
            if existing.status == LicenseStatus.ACTIVE.value:
                raise DuplicateBinding(account_id, hardware_id, existing.license_key, existing.status)
            raise DuplicatePending(account_id, hardware_id, existing.license_key)

        license_key = generate_license_key(self.key_prefix)
        record = License(
            license_key=license_key,
            account_id=account_id,
            account_server=account_server,
            hardware_id=hardware_id,
            ea_name=ea_name,
            expiry_date=None,
            status=LicenseStatus.PENDING.value,
            requested_by=str(client_id) if client_id is not None else None,
            requested_email=client_email or None,
        )
        self.session.add(record)
        await self._commit_unique(license_key, account_id, hardware_id, key_is_new=True)
        await self.session.refresh(record)

        logger.info(
            "Client %s requested license %s for account=%s hardware=%s",
            client_id, license_key, account_id, hardware_id,
        )
        return record

    # ── Review ──────────────────────────────────────────────────

    @store_operation
    async def approve_license(self, license_key: Optional[str], expiry_date: Optional[date]) -> License:
        """
        Approve a pending request, setting its expiry date.

        If another live license already holds the same account/hardware pair
        the request is rejected instead (expiry cleared) and
        AutoRejectedDuplicate is raised.
        """
        if not license_key:
            raise ValidationError("License key is required")
        if expiry_date is None:
            raise ValidationError("Expiry date is required")

        pending = await self._get_pending(license_key)
        if pending is None:
            raise NotFound("Pending license request not found")

        account_id = pending.account_id
        hardware_id = pending.hardware_id

        conflict = await self.find_live_binding(account_id, hardware_id, exclude_key=license_key)
        if conflict is not None:
            raise await self._reject_as_duplicate(pending, conflict)

        pending.status = LicenseStatus.ACTIVE.value
        pending.expiry_date = expiry_date
        try:
            await self.session.commit()
        except IntegrityError:
            # Another license went live for this pair after the check above
            await self.session.rollback()
            pending = await self._get_pending(license_key)
            conflict = await self.find_live_binding(account_id, hardware_id, exclude_key=license_key)
            if pending is None or conflict is None:
                raise DuplicateBinding(account_id, hardware_id)
            raise await self._reject_as_duplicate(pending, conflict)
        await self.session.refresh(pending)

        logger.info("Approved license %s (expiry=%s)", license_key, expiry_date)
        return pending

    async def _reject_as_duplicate(self, pending: License, conflict: License) -> AutoRejectedDuplicate:
        """Reject a pending request in place and return the error describing why."""
        license_key = pending.license_key
        account_id = pending.account_id
        hardware_id = pending.hardware_id
        existing_key = conflict.license_key
        existing_status = conflict.status

        pending.status = LicenseStatus.REJECTED.value
        pending.expiry_date = None
        await self.session.commit()

        logger.warning(
            "Auto-rejected license request %s: %s license %s already holds account=%s hardware=%s",
            license_key, existing_status, existing_key, account_id, hardware_id,
        )
        return AutoRejectedDuplicate(license_key, account_id, hardware_id, existing_key, existing_status)

    @store_operation
    async def reject_license(self, license_key: Optional[str]) -> License:
        """Reject a pending request."""
        if not license_key:
            raise ValidationError("License key is required")

        pending = await self._get_pending(license_key)
        if pending is None:
            raise NotFound("Pending license request not found")

        pending.status = LicenseStatus.REJECTED.value
        await self.session.commit()
        await self.session.refresh(pending)

        logger.info("Rejected license request %s", license_key)
        return pending

    # ── Admin maintenance ───────────────────────────────────────

    @store_operation
    async def update_license(
        self,
        license_key: Optional[str],
        account_id: Optional[str],
        hardware_id: Optional[str],
        expiry_date: Optional[date],
        status: Union[LicenseStatus, str, None] = None,
        account_server: Optional[str] = None,
        ea_name: Optional[str] = None,
    ) -> License:
        """
        Update a license in place.

        Any status may be set directly; it defaults to active. The binding
        check only applies when the resulting status is live.
        """
        _require(
            licenseKey=license_key,
            accountId=account_id,
            hardwareId=hardware_id,
            expiryDate=expiry_date,
        )
        account_id = str(account_id)
        status = _coerce_status(status)

        record = await self.get_license(license_key)
        if record is None:
            raise NotFound("License not found")

        if status in LIVE_STATUSES:
            conflict = await self.find_live_binding(account_id, hardware_id, exclude_key=license_key)
            if conflict is not None:
                raise DuplicateBinding(account_id, hardware_id, conflict.license_key, conflict.status)

        record.account_id = account_id
        record.hardware_id = hardware_id
        record.expiry_date = expiry_date
        record.status = status
        if account_server is not None:
            record.account_server = account_server
        if ea_name is not None:
            record.ea_name = ea_name

        await self._commit_unique(license_key, account_id, hardware_id, key_is_new=False)
        await self.session.refresh(record)

        logger.info("Updated license %s (status=%s, expiry=%s)", license_key, status, expiry_date)
        return record

    @store_operation
    async def delete_license(self, license_key: Optional[str]) -> bool:
        """Delete a license by key. Deleting an unknown key is not an error."""
        if not license_key:
            raise ValidationError("License key is required")

        result = await self.session.execute(
            delete(License).where(License.license_key == license_key)
        )
        await self.session.commit()

        deleted = (result.rowcount or 0) > 0
        if deleted:
            logger.info("Deleted license %s", license_key)
        else:
            logger.info("Delete requested for unknown license %s", license_key)
        return deleted

    # ── Product-facing validation ───────────────────────────────

    @store_operation
    async def validate_license(
        self,
        license_key: Optional[str],
        account_id: Optional[str],
        hardware_id: Optional[str],
        today: Optional[date] = None,
    ) -> dict:
        """
        Check a license on behalf of the licensed product.

        Returns {"status": "ok", "expiry": date} only for an exact
        key/account/hardware match that is active and not past its expiry
        date. Otherwise {"status": "invalid" | "expired", "message": str}.
        """
        if not license_key or account_id is None or account_id == "" or not hardware_id:
            logger.info("License validation with missing fields")
            return {"status": "invalid", "message": "License not found"}

        result = await self.session.execute(
            select(License).where(
                License.license_key == license_key,
                License.account_id == str(account_id),
                License.hardware_id == hardware_id,
            )
        )
        record = result.scalar_one_or_none()

        if record is None:
            logger.info("License validation failed: no match for %s", license_key)
            return {"status": "invalid", "message": "License not found"}

        today = today or utc_today()
        if (
            record.status != LicenseStatus.ACTIVE.value
            or record.expiry_date is None
            or record.expiry_date < today
        ):
            logger.info(
                "License validation failed: %s is %s (expiry=%s)",
                license_key, record.status, record.expiry_date,
            )
            return {"status": "expired", "message": "License expired or inactive"}

        return {"status": "ok", "expiry": record.expiry_date}

    # ── Listings ────────────────────────────────────────────────

    @store_operation
    async def list_licenses(self) -> list[License]:
        result = await self.session.execute(
            select(License).order_by(License.created_at.desc(), License.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def list_pending(self) -> list[License]:
        result = await self.session.execute(
            select(License)
            .where(License.status == LicenseStatus.PENDING.value)
            .order_by(License.created_at.desc(), License.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def list_for_requester(
        self,
        client_id: Optional[int],
        email: Optional[str],
    ) -> list[License]:
        """Licenses requested by a client, matched by client id or by email."""
        conditions = []
        if client_id is not None and str(client_id):
            conditions.append(License.requested_by == str(client_id))
        if email:
            conditions.append(License.requested_email == email)
        if not conditions:
            return []

        result = await self.session.execute(
            select(License)
            .where(or_(*conditions))
            .order_by(License.created_at.desc(), License.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def get_stats(self, today: Optional[date] = None) -> dict:
        """Counts for the admin dashboard summary cards."""
        today = today or utc_today()

        result = await self.session.execute(
            select(License.status, func.count(License.id)).group_by(License.status)
        )
        by_status = {status: count for status, count in result.all()}

        expired_result = await self.session.execute(
            select(func.count(License.id)).where(
                and_(
                    License.status == LicenseStatus.ACTIVE.value,
                    License.expiry_date < today,
                )
            )
        )
        expired = expired_result.scalar() or 0

        return {
            "total": sum(by_status.values()),
            "active": by_status.get(LicenseStatus.ACTIVE.value, 0),
            "expired": expired,
            "pending": by_status.get(LicenseStatus.PENDING.value, 0),
            "rejected": by_status.get(LicenseStatus.REJECTED.value, 0),
            "inactive": by_status.get(LicenseStatus.INACTIVE.value, 0),
        }
