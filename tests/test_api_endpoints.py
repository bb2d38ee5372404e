import csv
import io
from uuid import uuid4

import pytest

from buyer_intake.core.config import settings
from buyer_intake.core.constants import EXPORT_HEADERS, IMPORT_HEADERS

API = "/api/v1"


def _csv_upload(rows):
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(IMPORT_HEADERS))
    writer.writeheader()
    writer.writerows(rows)
    return {"file": ("buyers.csv", buffer.getvalue().encode("utf-8"), "text/csv")}


def _import_row(i: int, **overrides):
    row = {
        "fullName": f"Imported {i}",
        "email": "",
        "phone": f"98000000{i:02d}",
        "city": "MOHALI",
        "propertyType": "PLOT",
        "bhk": "",
        "purpose": "BUY",
        "budgetMin": "",
        "budgetMax": "",
        "timeline": "EXPLORING",
        "source": "OTHER",
        "notes": "",
        "tags": "",
    }
    row.update(overrides)
    return row


async def _create(client, headers, payload):
    response = await client.post(f"{API}/buyers", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCORSMiddleware:
    """Verify that CORS headers are present on responses."""

    @pytest.mark.asyncio
    async def test_cors_headers_on_get(self, async_client):
        response = await async_client.get(
            f"{API}/health", headers={"Origin": "http://localhost:3000"}
        )
        assert response.status_code == 200
        assert (
            response.headers.get("access-control-allow-origin")
            == "http://localhost:3000"
        )


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_demo_login_issues_token(self, async_client):
        response = await async_client.post(
            f"{API}/auth/login",
            json={
                "email": settings.DEMO_USER_EMAIL,
                "password": settings.DEMO_USER_PASSWORD,
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["user"]["email"] == settings.DEMO_USER_EMAIL

        me = await async_client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {body['accessToken']}"},
        )
        assert me.status_code == 200
        assert me.json()["id"] == body["user"]["id"]

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, async_client):
        response = await async_client.post(
            f"{API}/auth/login",
            json={"email": settings.DEMO_USER_EMAIL, "password": "nope"},
        )
        assert response.status_code == 401
        assert response.json()["type"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_buyers_require_a_token(self, async_client):
        response = await async_client.get(f"{API}/buyers")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, async_client):
        response = await async_client.get(
            f"{API}/buyers", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"


class TestBuyerCrud:
    @pytest.mark.asyncio
    async def test_create_returns_camel_case_record(
        self, async_client, owner, owner_headers, buyer_payload
    ):
        body = await _create(async_client, owner_headers, buyer_payload())
        assert body["fullName"] == "Rajesh Kumar"
        assert body["propertyType"] == "APARTMENT"
        assert body["status"] == "NEW"
        assert body["ownerId"] == str(owner.user_id)
        assert body["createdAt"] == body["updatedAt"]

    @pytest.mark.asyncio
    async def test_create_validation_errors_are_field_paths(
        self, async_client, owner_headers, buyer_payload
    ):
        response = await async_client.post(
            f"{API}/buyers",
            json=buyer_payload(phone="123", budgetMin=10, budgetMax=5),
            headers=owner_headers,
        )
        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "validation_error"
        assert {"field": "phone", "message": "Phone must be 10-15 digits"} in body[
            "errors"
        ]

    @pytest.mark.asyncio
    async def test_cross_field_errors_surface_on_create(
        self, async_client, owner_headers, buyer_payload
    ):
        response = await async_client.post(
            f"{API}/buyers",
            json=buyer_payload(budgetMin=10, budgetMax=5),
            headers=owner_headers,
        )
        assert response.status_code == 422
        assert response.json()["errors"] == [
            {
                "field": "budgetMax",
                "message": "Maximum budget must be greater than or equal to minimum budget",
            }
        ]

    @pytest.mark.asyncio
    async def test_non_object_body_rejected(self, async_client, owner_headers):
        response = await async_client.post(
            f"{API}/buyers", json=["not", "an", "object"], headers=owner_headers
        )
        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_detail_includes_owner_and_history(
        self, async_client, owner_headers, buyer_payload
    ):
        created = await _create(async_client, owner_headers, buyer_payload())
        response = await async_client.get(
            f"{API}/buyers/{created['id']}", headers=owner_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["owner"]["name"] == "Olivia Owner"
        assert body["history"][0]["diff"]["action"] == "CREATED"
        assert "old" not in body["history"][0]["diff"]["fields"]["fullName"]

    @pytest.mark.asyncio
    async def test_unknown_buyer_is_404(self, async_client, owner_headers):
        response = await async_client.get(
            f"{API}/buyers/{uuid4()}", headers=owner_headers
        )
        assert response.status_code == 404
        assert response.json()["type"] == "buyer_not_found"

    @pytest.mark.asyncio
    async def test_update_with_current_version(
        self, async_client, owner_headers, buyer_payload
    ):
        created = await _create(async_client, owner_headers, buyer_payload())
        response = await async_client.put(
            f"{API}/buyers/{created['id']}",
            json={"updatedAt": created["updatedAt"], "status": "CONTACTED"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "CONTACTED"
        assert body["updatedAt"] != created["updatedAt"]

    @pytest.mark.asyncio
    async def test_stale_update_is_409(self, async_client, owner_headers, buyer_payload):
        created = await _create(async_client, owner_headers, buyer_payload())
        url = f"{API}/buyers/{created['id']}"

        first = await async_client.put(
            url,
            json={"updatedAt": created["updatedAt"], "notes": "first"},
            headers=owner_headers,
        )
        second = await async_client.put(
            url,
            json={"updatedAt": created["updatedAt"], "notes": "second"},
            headers=owner_headers,
        )

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["type"] == "version_conflict"

        detail = await async_client.get(url, headers=owner_headers)
        assert detail.json()["notes"] == "first"

    @pytest.mark.asyncio
    async def test_non_owner_update_and_delete_forbidden(
        self, async_client, owner_headers, other_headers, buyer_payload
    ):
        created = await _create(async_client, owner_headers, buyer_payload())
        url = f"{API}/buyers/{created['id']}"

        update = await async_client.put(url, json={"notes": "x"}, headers=other_headers)
        delete = await async_client.delete(url, headers=other_headers)

        assert update.status_code == 403
        assert delete.status_code == 403
        assert update.json()["type"] == "not_owner"

    @pytest.mark.asyncio
    async def test_owner_delete(self, async_client, owner_headers, buyer_payload):
        created = await _create(async_client, owner_headers, buyer_payload())
        url = f"{API}/buyers/{created['id']}"

        response = await async_client.delete(url, headers=owner_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert (await async_client.get(url, headers=owner_headers)).status_code == 404


class TestBuyerList:
    @pytest.mark.asyncio
    async def test_filters_and_pagination(
        self, async_client, owner_headers, buyer_payload
    ):
        for i, city in enumerate(["MOHALI", "MOHALI", "ZIRAKPUR"]):
            await _create(
                async_client,
                owner_headers,
                buyer_payload(fullName=f"Lead {i}", phone=f"900000000{i}", city=city),
            )

        response = await async_client.get(
            f"{API}/buyers",
            params={"city": "MOHALI", "pageSize": 1, "page": 1},
            headers=owner_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["pages"] == 2
        assert body["pageSize"] == 1
        assert body["items"][0]["fullName"] == "Lead 1"
        assert body["items"][0]["owner"]["email"] == "owner@example.com"

    @pytest.mark.asyncio
    async def test_blank_filters_are_ignored(
        self, async_client, owner_headers, buyer_payload
    ):
        await _create(async_client, owner_headers, buyer_payload())
        response = await async_client.get(
            f"{API}/buyers",
            params={"city": "", "search": "  "},
            headers=owner_headers,
        )
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_unknown_filter_value_is_422(self, async_client, owner_headers):
        response = await async_client.get(
            f"{API}/buyers", params={"propertyType": "CASTLE"}, headers=owner_headers
        )
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "propertyType"

    @pytest.mark.asyncio
    async def test_page_size_out_of_range_is_422(self, async_client, owner_headers):
        response = await async_client.get(
            f"{API}/buyers", params={"pageSize": 500}, headers=owner_headers
        )
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "pageSize"


class TestExportEndpoint:
    @pytest.mark.asyncio
    async def test_export_is_a_csv_attachment(
        self, async_client, owner_headers, buyer_payload
    ):
        await _create(async_client, owner_headers, buyer_payload(city="MOHALI"))
        await _create(
            async_client,
            owner_headers,
            buyer_payload(fullName="Other City", phone="9111111111", city="OTHER"),
        )

        response = await async_client.get(
            f"{API}/buyers/export", params={"city": "MOHALI"}, headers=owner_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=\"buyers-" in response.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert list(rows[0]) == list(EXPORT_HEADERS)
        assert [r["fullName"] for r in rows] == ["Rajesh Kumar"]


class TestImportEndpoint:
    @pytest.mark.asyncio
    async def test_valid_upload_imports_every_row(self, async_client, owner_headers):
        response = await async_client.post(
            f"{API}/buyers/import",
            files=_csv_upload([_import_row(i) for i in range(1, 4)]),
            headers=owner_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 3
        assert len(body["buyerIds"]) == 3

    @pytest.mark.asyncio
    async def test_invalid_row_rejects_batch(self, async_client, owner_headers):
        rows = [_import_row(i) for i in range(1, 11)]
        rows[6]["phone"] = "123"

        response = await async_client.post(
            f"{API}/buyers/import", files=_csv_upload(rows), headers=owner_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["type"] == "import_rejected"
        assert body["validCount"] == 9
        assert body["invalidCount"] == 1
        assert body["errors"] == ["Row 7: phone: Phone must be 10-15 digits"]
        assert body["rowErrors"][0]["row"] == 7

        listing = await async_client.get(f"{API}/buyers", headers=owner_headers)
        assert listing.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_too_many_rows_is_413(self, async_client, owner_headers):
        rows = [_import_row(i % 100) for i in range(201)]
        response = await async_client.post(
            f"{API}/buyers/import", files=_csv_upload(rows), headers=owner_headers
        )
        assert response.status_code == 413
        assert response.json()["type"] == "import_limit_exceeded"

    @pytest.mark.asyncio
    async def test_wrong_headers_is_400(self, async_client, owner_headers):
        files = {"file": ("buyers.csv", b"name,phone\nAsha,9000000001\n", "text/csv")}
        response = await async_client.post(
            f"{API}/buyers/import", files=files, headers=owner_headers
        )
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_import_file"

    @pytest.mark.asyncio
    async def test_non_csv_upload_is_400(self, async_client, owner_headers):
        files = {"file": ("buyers.json", b"{}", "application/json")}
        response = await async_client.post(
            f"{API}/buyers/import", files=files, headers=owner_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "File must be a CSV"
