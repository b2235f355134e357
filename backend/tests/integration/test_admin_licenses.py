"""
Integration tests for the admin license endpoints.

Tests the /api/admin/licenses/* endpoints: listing, statistics, creation,
update, deletion and the review of pending client requests.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from license_server.models import License


@pytest.mark.integration
class TestAdminLicenseAccess:
    """Test admin authentication on license endpoints."""

    @pytest.mark.asyncio
    async def test_list_requires_admin(self, client: AsyncClient):
        """Test the list endpoint without a session."""
        response = await client.get("/api/admin/licenses/list")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Unauthorized",
            "message": "Please login to access this resource",
        }

    @pytest.mark.asyncio
    async def test_forged_token_rejected(self, client: AsyncClient):
        """Test a well-formed but unsigned token is rejected."""
        response = await client.get(
            "/api/admin/licenses/pending",
            headers={"Authorization": "Bearer " + "f" * 64}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_client_session_is_not_admin(self, client: AsyncClient, client_headers: dict):
        """Test a client session token does not open admin endpoints."""
        response = await client.get("/api/admin/licenses/list", headers=client_headers)

        assert response.status_code == 401


@pytest.mark.integration
class TestAdminLicenseCrud:
    """Test create, list, update and delete."""

    @pytest.mark.asyncio
    async def test_create_license(self, client: AsyncClient, admin_headers: dict, sample_license_data: dict):
        """Test creating a license."""
        response = await client.post(
            "/api/admin/licenses/create", json=sample_license_data, headers=admin_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "License created successfully"
        assert body["data"]["license_key"] == "ALGO-NEW"
        assert body["data"]["account_id"] == "12345"
        assert body["data"]["hardware_id"] == "HW-NEW"
        assert body["data"]["expiry_date"] == "2099-12-31"
        assert body["data"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_create_numeric_account_id(
        self, client: AsyncClient, admin_headers: dict, sample_license_data: dict
    ):
        """Test a numeric accountId is stored as a string."""
        sample_license_data["accountId"] = 987654

        response = await client.post(
            "/api/admin/licenses/create", json=sample_license_data, headers=admin_headers
        )

        assert response.status_code == 201
        assert response.json()["data"]["account_id"] == "987654"

    @pytest.mark.asyncio
    async def test_create_duplicate_key(
        self, client: AsyncClient, admin_headers: dict, sample_license_data: dict, active_license: License
    ):
        """Test creating with an existing key."""
        sample_license_data["licenseKey"] = "ALGO-AAA"

        response = await client.post(
            "/api/admin/licenses/create", json=sample_license_data, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Duplicate license key"

    @pytest.mark.asyncio
    async def test_create_duplicate_binding(
        self, client: AsyncClient, admin_headers: dict, sample_license_data: dict, active_license: License
    ):
        """Test creating a second live license for the same account and hardware."""
        sample_license_data["accountId"] = "acct1"
        sample_license_data["hardwareId"] = "hw1"

        response = await client.post(
            "/api/admin/licenses/create", json=sample_license_data, headers=admin_headers
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "Duplicate license"
        assert body["existingLicenseKey"] == "ALGO-AAA"
        assert body["existingStatus"] == "active"

    @pytest.mark.asyncio
    async def test_create_missing_fields(self, client: AsyncClient, admin_headers: dict):
        """Test creating without the required fields."""
        response = await client.post(
            "/api/admin/licenses/create",
            json={"licenseKey": "ALGO-X", "accountId": "", "hardwareId": "hw"},
            headers=admin_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation error"
        assert body["message"] == "All fields are required"
        assert "accountId" in body["missingFields"]

    @pytest.mark.asyncio
    async def test_create_bad_date(
        self, client: AsyncClient, admin_headers: dict, sample_license_data: dict
    ):
        """Test an unparseable expiry date."""
        sample_license_data["expiryDate"] = "next year"

        response = await client.post(
            "/api/admin/licenses/create", json=sample_license_data, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    @pytest.mark.asyncio
    async def test_create_bad_status(
        self, client: AsyncClient, admin_headers: dict, sample_license_data: dict
    ):
        """Test an unknown status."""
        sample_license_data["status"] = "suspended"

        response = await client.post(
            "/api/admin/licenses/create", json=sample_license_data, headers=admin_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_licenses(
        self, client: AsyncClient, admin_headers: dict, active_license: License, pending_license: License
    ):
        """Test listing returns every license, newest first."""
        response = await client.get("/api/admin/licenses/list", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [lic["license_key"] for lic in body["data"]] == ["ALGO-PENDING", "ALGO-AAA"]

    @pytest.mark.asyncio
    async def test_list_store_failure(self, client: AsyncClient, admin_headers: dict, monkeypatch):
        """Test a failing store query answers 500 Database error."""
        async def execute(self, *args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(AsyncSession, "execute", execute)

        response = await client.get("/api/admin/licenses/list", headers=admin_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Database error", "message": "Database operation failed"}

    @pytest.mark.asyncio
    async def test_update_license(self, client: AsyncClient, admin_headers: dict, active_license: License):
        """Test updating a license."""
        response = await client.put(
            "/api/admin/licenses/update",
            json={
                "licenseKey": "ALGO-AAA",
                "accountId": "acct1",
                "hardwareId": "hw1",
                "expiryDate": "2030-01-31",
                "status": "inactive",
            },
            headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "License updated successfully"
        assert body["data"]["expiry_date"] == "2030-01-31"
        assert body["data"]["status"] == "inactive"
        assert body["data"]["ea_name"] == "Trend EA"

    @pytest.mark.asyncio
    async def test_update_unknown_license(self, client: AsyncClient, admin_headers: dict):
        """Test updating a license that does not exist."""
        response = await client.put(
            "/api/admin/licenses/update",
            json={
                "licenseKey": "ALGO-NOPE",
                "accountId": "acct1",
                "hardwareId": "hw1",
                "expiryDate": "2030-01-31",
            },
            headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Not found"

    @pytest.mark.asyncio
    async def test_delete_by_query(self, client: AsyncClient, admin_headers: dict, active_license: License):
        """Test deleting with the key in the query string."""
        response = await client.delete(
            "/api/admin/licenses/delete", params={"licenseKey": "ALGO-AAA"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "License deleted successfully"}

        listing = await client.get("/api/admin/licenses/list", headers=admin_headers)
        assert listing.json()["data"] == []

    @pytest.mark.asyncio
    async def test_delete_by_body(self, client: AsyncClient, admin_headers: dict, active_license: License):
        """Test deleting with the key in the JSON body."""
        response = await client.request(
            "DELETE",
            "/api/admin/licenses/delete",
            json={"licenseKey": "ALGO-AAA"},
            headers=admin_headers
        )

        assert response.status_code == 200

        listing = await client.get("/api/admin/licenses/list", headers=admin_headers)
        assert listing.json()["data"] == []

    @pytest.mark.asyncio
    async def test_delete_unknown_key(self, client: AsyncClient, admin_headers: dict):
        """Test deleting an unknown key still succeeds."""
        response = await client.delete(
            "/api/admin/licenses/delete", params={"licenseKey": "does-not-exist"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_delete_without_key(self, client: AsyncClient, admin_headers: dict):
        """Test deleting without any key."""
        response = await client.delete("/api/admin/licenses/delete", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    @pytest.mark.asyncio
    async def test_stats(
        self, client: AsyncClient, admin_headers: dict, active_license: License, pending_license: License
    ):
        """Test dashboard statistics."""
        response = await client.get("/api/admin/licenses/stats", headers=admin_headers)

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["total"] == 2
        assert stats["active"] == 1
        assert stats["pending"] == 1
        assert stats["rejected"] == 0


@pytest.mark.integration
class TestAdminReview:
    """Test pending request review."""

    @pytest.mark.asyncio
    async def test_pending_list(
        self, client: AsyncClient, admin_headers: dict, active_license: License, pending_license: License
    ):
        """Test the pending list and its count."""
        response = await client.get("/api/admin/licenses/pending", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["pendingRequests"][0]["license_key"] == "ALGO-PENDING"
        assert body["pendingRequests"][0]["requested_email"] == "client@test.com"

    @pytest.mark.asyncio
    async def test_approve(self, client: AsyncClient, admin_headers: dict, pending_license: License):
        """Test approving a pending request."""
        response = await client.post(
            "/api/admin/licenses/approve",
            json={"licenseKey": "ALGO-PENDING", "expiryDate": "2031-03-01"},
            headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "active"
        assert body["data"]["expiry_date"] == "2031-03-01"

        pending = await client.get("/api/admin/licenses/pending", headers=admin_headers)
        assert pending.json()["count"] == 0

    @pytest.mark.asyncio
    async def test_approve_without_expiry(self, client: AsyncClient, admin_headers: dict, pending_license: License):
        """Test approving without an expiry date."""
        response = await client.post(
            "/api/admin/licenses/approve",
            json={"licenseKey": "ALGO-PENDING"},
            headers=admin_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_approve_unknown(self, client: AsyncClient, admin_headers: dict):
        """Test approving a key that is not pending."""
        response = await client.post(
            "/api/admin/licenses/approve",
            json={"licenseKey": "ALGO-NOPE", "expiryDate": "2031-03-01"},
            headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Pending license request not found"

    @pytest.mark.asyncio
    async def test_approve_conflict_auto_rejects(
        self, client: AsyncClient, admin_headers: dict, db_session: AsyncSession, active_license: License
    ):
        """Test approving a request that collides with an active license."""
        # Recreate a legacy collision the unique index now prevents
        await db_session.execute(text("DROP INDEX uq_licenses_live_binding"))
        db_session.add(License(
            license_key="ALGO-LATE",
            account_id="acct1",
            account_server="Broker-Live",
            hardware_id="hw1",
            ea_name="Trend EA",
            status="pending",
        ))
        await db_session.commit()

        response = await client.post(
            "/api/admin/licenses/approve",
            json={"licenseKey": "ALGO-LATE", "expiryDate": "2031-03-01"},
            headers=admin_headers
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "Duplicate license"
        assert body["autoRejected"] is True
        assert body["existingLicenseKey"] == "ALGO-AAA"
        assert body["existingStatus"] == "active"

        pending = await client.get("/api/admin/licenses/pending", headers=admin_headers)
        assert "ALGO-LATE" not in [lic["license_key"] for lic in pending.json()["pendingRequests"]]

        stats = await client.get("/api/admin/licenses/stats", headers=admin_headers)
        assert stats.json()["stats"]["rejected"] == 1

    @pytest.mark.asyncio
    async def test_reject(self, client: AsyncClient, admin_headers: dict, pending_license: License):
        """Test rejecting a pending request."""
        response = await client.post(
            "/api/admin/licenses/reject",
            json={"licenseKey": "ALGO-PENDING"},
            headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_reject_unknown(self, client: AsyncClient, admin_headers: dict):
        """Test rejecting a key that is not pending."""
        response = await client.post(
            "/api/admin/licenses/reject",
            json={"licenseKey": "ALGO-NOPE"},
            headers=admin_headers
        )

        assert response.status_code == 404
