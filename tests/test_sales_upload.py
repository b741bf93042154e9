"""
CSV sale upload tests.

Verifies:
- rows are numbered from 2 (row 1 is the header)
- each row succeeds or fails on its own
- malformed files are rejected before any row runs
"""

import pytest

HEADER = "product_sku,location_name,quantity,unit_price,customer_name\n"


def _upload(content: str):
    return {"file": ("sales.csv", content.encode("utf-8"), "text/csv")}


class TestBulkUpload:
    async def test_mixed_rows(self, client, seed, admin_headers):
        content = HEADER + (
            "LAP-001,Main Warehouse,2,1299.99,John Doe\n"
            "NOPE-1,Main Warehouse,1,10.00,\n"
            "LAP-001,Nowhere,1,10.00,\n"
            "LAP-001,Main Warehouse,abc,10.00,\n"
            "LAP-001,Main Warehouse,100,10.00,\n"
            "LAP-001,Downtown Store,1,10.00,\n"
            ",Main Warehouse,1,10.00,\n"
            "LAP-001,Main Warehouse,3,1299.99,Jane Roe\n"
        )

        resp = await client.post("/sales/bulk-upload", files=_upload(content), headers=admin_headers)
        assert resp.status_code == 200, resp.text

        data = resp.json()["data"]
        assert (data["total"], data["succeeded"], data["failed"]) == (8, 2, 6)

        by_row = {r["row"]: r for r in data["results"]}
        assert sorted(by_row) == list(range(2, 10))
        assert by_row[2]["success"] is True
        assert by_row[2]["sale_id"] is not None
        assert by_row[3]["message"] == 'Product with SKU "NOPE-1" not found'
        assert by_row[4]["message"] == 'Location "Nowhere" not found'
        assert by_row[5]["message"] == "Invalid quantity"
        assert by_row[6]["message"] == "Insufficient stock for this sale"
        assert by_row[7]["message"] == "No inventory found for this product at this location"
        assert by_row[8]["message"] == "Missing required fields"
        assert by_row[9]["success"] is True

        inventory = await client.get(f"/inventory/location/{seed.main_id}", headers=admin_headers)
        assert inventory.json()["data"][0]["quantity"] == 5

        outs = await client.get(
            "/inventory/transactions",
            params={"transaction_type": "out"},
            headers=admin_headers,
        )
        references = {t["reference_number"] for t in outs.json()["data"]["items"]}
        assert references == {f"BULK-SALE-{by_row[2]['sale_id']}", f"BULK-SALE-{by_row[9]['sale_id']}"}
        assert {t["reason"] for t in outs.json()["data"]["items"]} == {"Bulk sale upload"}

    async def test_manager_rows_outside_assignment(self, client, seed, admin_headers, manager_headers):
        await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.downtown_id,
                "quantity": 5,
                "transaction_type": "in",
                "reason": "Receiving",
            },
            headers=admin_headers,
        )
        content = HEADER + (
            "LAP-001,Downtown Store,1,10.00,\n"
            "LAP-001,Main Warehouse,1,10.00,\n"
        )

        resp = await client.post("/sales/bulk-upload", files=_upload(content), headers=manager_headers)
        results = resp.json()["data"]["results"]

        assert results[0] == {
            "row": 2,
            "success": False,
            "message": "Access denied to this location",
            "sale_id": None,
        }
        assert results[1]["success"] is True

    async def test_missing_columns(self, client, seed, admin_headers):
        resp = await client.post(
            "/sales/bulk-upload",
            files=_upload("product_sku,quantity\nLAP-001,1\n"),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "INVALID_UPLOAD"
        assert body["details"] == {"missing": ["location_name", "unit_price"]}

    @pytest.mark.parametrize("content", [b"", b"\xff\xfe\x00bad"])
    async def test_unreadable_file(self, client, seed, admin_headers, content):
        resp = await client.post(
            "/sales/bulk-upload",
            files={"file": ("sales.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "INVALID_UPLOAD"

    async def test_no_file(self, client, seed, admin_headers):
        resp = await client.post("/sales/bulk-upload", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "No file uploaded"

    async def test_upload_is_logged_as_activity(self, client, seed, admin_headers):
        content = HEADER + "LAP-001,Main Warehouse,1,1299.99,\n"
        await client.post("/sales/bulk-upload", files=_upload(content), headers=admin_headers)

        resp = await client.get(
            "/activities",
            params={"action": "BULK_UPLOAD_SALES"},
            headers=admin_headers,
        )
        items = resp.json()["data"]["items"]
        assert len(items) == 1
        assert items[0]["username_snapshot"] == "admin"

    async def test_bad_customer_email_rejects_row(self, client, seed, admin_headers):
        content = (
            "product_sku,location_name,quantity,unit_price,customer_email\n"
            "LAP-001,Main Warehouse,1,1299.99,not-an-email\n"
            "LAP-001,Main Warehouse,1,1299.99,jane@example.com\n"
        )

        resp = await client.post("/sales/bulk-upload", files=_upload(content), headers=admin_headers)
        results = resp.json()["data"]["results"]

        assert results[0]["success"] is False
        assert results[0]["message"] == "Invalid customer email"
        assert results[1]["success"] is True

        sale = await client.get(f"/sales/{results[1]['sale_id']}", headers=admin_headers)
        assert sale.json()["data"]["customer_email"] == "jane@example.com"

        inventory = await client.get(f"/inventory/location/{seed.main_id}", headers=admin_headers)
        assert inventory.json()["data"][0]["quantity"] == 9
