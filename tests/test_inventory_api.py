"""
Inventory API tests.

Verifies:
- stock changes through POST /inventory and PUT /inventory/{id}
- bulk update reports per-item results and keeps the good items
- low stock listing and the transaction log
- reconciliation against the ledger
"""

import pytest


async def _inventory_id(client, headers, location_id):
    resp = await client.get(f"/inventory/location/{location_id}", headers=headers)
    return resp.json()["data"][0]["id"]


class TestStockChange:
    async def test_receive_into_new_location(self, client, seed, admin_headers):
        resp = await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.downtown_id,
                "quantity": 4,
                "transaction_type": "in",
                "reason": "Receiving",
                "reference_number": "PO-100",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text

        data = resp.json()["data"]
        assert data["inventory"]["quantity"] == 4
        assert data["inventory"]["location_name"] == "Downtown Store"
        assert data["transaction"]["previous_quantity"] == 0
        assert data["transaction"]["reference_number"] == "PO-100"

    async def test_out_beyond_stock(self, client, seed, admin_headers):
        resp = await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.main_id,
                "quantity": 50,
                "transaction_type": "out",
                "reason": "Damaged",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert body["details"] == {"available": 10, "requested": 50}

    async def test_blank_reason_is_validation_error(self, client, seed, admin_headers):
        resp = await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.main_id,
                "quantity": 1,
                "transaction_type": "in",
                "reason": "   ",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "VALIDATION_ERROR"

    async def test_unknown_transaction_type(self, client, seed, admin_headers):
        resp = await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.main_id,
                "quantity": 1,
                "transaction_type": "transfer",
                "reason": "Move",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_adjust_by_record_id(self, client, seed, admin_headers):
        inventory_id = await _inventory_id(client, admin_headers, seed.main_id)

        resp = await client.put(
            f"/inventory/{inventory_id}",
            json={"quantity": 3, "transaction_type": "adjustment", "reason": "Stocktake"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["inventory"]["quantity"] == 3
        assert data["transaction"]["transaction_type"] == "adjustment"

    async def test_unknown_record(self, client, seed, admin_headers):
        resp = await client.put(
            "/inventory/9999",
            json={"quantity": 3, "transaction_type": "adjustment", "reason": "Stocktake"},
            headers=admin_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "INVENTORY_NOT_FOUND"


class TestBulkUpdate:
    async def test_per_item_results(self, client, seed, admin_headers):
        inventory_id = await _inventory_id(client, admin_headers, seed.main_id)

        resp = await client.post(
            "/inventory/bulk-update",
            json={
                "updates": [
                    {"inventory_id": inventory_id, "quantity": 2, "transaction_type": "out", "reason": "Shrinkage"},
                    {"inventory_id": inventory_id, "quantity": 99, "transaction_type": "out", "reason": "Too many"},
                    {"inventory_id": 9999, "quantity": 1, "transaction_type": "in", "reason": "Missing"},
                    {"inventory_id": inventory_id, "quantity": 5, "transaction_type": "in", "reason": "Return"},
                ]
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text

        data = resp.json()["data"]
        assert (data["succeeded"], data["failed"]) == (2, 2)
        assert [r["success"] for r in data["results"]] == [True, False, False, True]
        assert data["results"][0]["new_quantity"] == 8
        assert data["results"][2]["message"] == "Inventory record not found"
        assert data["results"][3]["new_quantity"] == 13

        inventory = await client.get(f"/inventory/location/{seed.main_id}", headers=admin_headers)
        assert inventory.json()["data"][0]["quantity"] == 13

    async def test_manager_outside_assignment_fails_item(
        self, client, seed, admin_headers, manager_headers
    ):
        created = await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.downtown_id,
                "quantity": 4,
                "transaction_type": "in",
                "reason": "Receiving",
            },
            headers=admin_headers,
        )
        downtown_record = created.json()["data"]["inventory"]["id"]

        resp = await client.post(
            "/inventory/bulk-update",
            json={
                "updates": [
                    {"inventory_id": downtown_record, "quantity": 1, "transaction_type": "out", "reason": "Sale"},
                ]
            },
            headers=manager_headers,
        )
        assert resp.status_code == 200
        result = resp.json()["data"]["results"][0]
        assert result["success"] is False
        assert result["message"] == "Access denied to this location"

    async def test_empty_batch_rejected(self, client, seed, admin_headers):
        resp = await client.post("/inventory/bulk-update", json={"updates": []}, headers=admin_headers)
        assert resp.status_code == 400


class TestReads:
    async def test_list_and_low_stock(self, client, seed, admin_headers):
        listing = await client.get("/inventory", headers=admin_headers)
        assert listing.status_code == 200
        assert listing.json()["data"]["pagination"]["total"] == 1

        low = await client.get("/inventory/low-stock", headers=admin_headers)
        assert low.json()["data"] == []

        inventory_id = await _inventory_id(client, admin_headers, seed.main_id)
        await client.put(
            f"/inventory/{inventory_id}",
            json={"quantity": 5, "transaction_type": "adjustment", "reason": "Stocktake"},
            headers=admin_headers,
        )

        # quantity equal to the reorder level counts as low
        low = await client.get("/inventory/low-stock", headers=admin_headers)
        assert [i["sku"] for i in low.json()["data"]] == ["LAP-001"]

        flagged = await client.get("/inventory", params={"low_stock": True}, headers=admin_headers)
        assert flagged.json()["data"]["pagination"]["total"] == 1

    async def test_transaction_log_newest_first(self, client, seed, admin_headers):
        inventory_id = await _inventory_id(client, admin_headers, seed.main_id)
        await client.put(
            f"/inventory/{inventory_id}",
            json={"quantity": 2, "transaction_type": "out", "reason": "Shrinkage"},
            headers=admin_headers,
        )

        resp = await client.get(
            "/inventory/transactions",
            params={"product_id": seed.laptop_id},
            headers=admin_headers,
        )
        items = resp.json()["data"]["items"]
        assert [t["transaction_type"] for t in items] == ["out", "in"]
        assert items[1]["reference_number"] == "INIT-1"
        assert items[0]["created_by_username"] == "admin"


class TestReconcile:
    @pytest.mark.parametrize(
        "tx_type,quantity",
        [("in", 3), ("out", 4), ("adjustment", 12)],
    )
    async def test_consistent_after_changes(self, client, seed, admin_headers, tx_type, quantity):
        inventory_id = await _inventory_id(client, admin_headers, seed.main_id)
        await client.put(
            f"/inventory/{inventory_id}",
            json={"quantity": quantity, "transaction_type": tx_type, "reason": "Count"},
            headers=admin_headers,
        )

        resp = await client.get(f"/inventory/{inventory_id}/reconcile", headers=admin_headers)
        assert resp.status_code == 200

        data = resp.json()["data"]
        assert data["consistent"] is True
        assert data["transaction_count"] == 2
        assert data["reconstructed_quantity"] == data["recorded_quantity"]
