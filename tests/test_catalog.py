"""
Product and location catalog tests.

Verifies:
- SKU and location name uniqueness
- retirement is blocked while stock (or managers) remain
- retired rows drop out of the default listings
- manager assignment rules
"""

from decimal import Decimal

import pytest


NEW_PRODUCT = {
    "sku": "MOU-001",
    "name": "Wireless Mouse",
    "category": "Accessories",
    "brand": "Acme",
    "unit_price": "24.50",
    "reorder_level": 10,
}


# =============================================================================
# PRODUCTS
# =============================================================================


class TestProducts:
    async def test_create_and_fetch(self, client, seed, admin_headers):
        resp = await client.post("/products", json=NEW_PRODUCT, headers=admin_headers)
        assert resp.status_code == 201, resp.text

        product = resp.json()["data"]
        assert product["status"] == "active"
        assert product["is_active"] is True
        assert product["total_stock"] == 0
        assert Decimal(str(product["unit_price"])) == Decimal("24.50")

        detail = await client.get(f"/products/{product['id']}", headers=admin_headers)
        assert detail.status_code == 200
        assert detail.json()["data"]["inventory"] == []

    async def test_duplicate_sku(self, client, seed, admin_headers):
        resp = await client.post(
            "/products",
            json={**NEW_PRODUCT, "sku": "LAP-001"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "PRODUCT_SKU_EXISTS"

    async def test_detail_includes_stock_by_location(self, client, seed, admin_headers):
        resp = await client.get(f"/products/{seed.laptop_id}", headers=admin_headers)
        data = resp.json()["data"]

        assert data["total_stock"] == 10
        assert [(i["location_name"], i["quantity"]) for i in data["inventory"]] == [
            ("Main Warehouse", 10)
        ]

    async def test_search_and_lookups(self, client, seed, admin_headers):
        await client.post("/products", json=NEW_PRODUCT, headers=admin_headers)

        found = await client.get("/products", params={"search": "laptop"}, headers=admin_headers)
        assert [p["sku"] for p in found.json()["data"]["items"]] == ["LAP-001"]

        categories = await client.get("/products/categories/list", headers=admin_headers)
        assert categories.json()["data"] == ["Accessories", "Electronics"]

        brands = await client.get("/products/brands/list", headers=admin_headers)
        assert brands.json()["data"] == ["Acme"]

    async def test_update_tracks_changes(self, client, seed, admin_headers):
        resp = await client.put(
            f"/products/{seed.laptop_id}",
            json={"unit_price": "1199.99", "reorder_level": 3},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["reorder_level"] == 3

        same = await client.put(
            f"/products/{seed.laptop_id}",
            json={"reorder_level": 3},
            headers=admin_headers,
        )
        assert same.status_code == 400

    async def test_sku_is_immutable(self, client, seed, admin_headers):
        resp = await client.put(
            f"/products/{seed.laptop_id}",
            json={"sku": "LAP-999"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize(
        "payload",
        [{"unit_price": None}, {"name": None}, {"reorder_level": None}, {"name": "  "}],
    )
    async def test_update_rejects_cleared_required_field(self, client, seed, admin_headers, payload):
        resp = await client.put(f"/products/{seed.laptop_id}", json=payload, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "VALIDATION_ERROR"

        product = (await client.get(f"/products/{seed.laptop_id}", headers=admin_headers)).json()["data"]
        assert product["name"] == "Laptop Pro 15"
        assert Decimal(str(product["unit_price"])) == Decimal("1299.99")
        assert product["reorder_level"] == 5

    async def test_retire_blocked_while_stocked(self, client, seed, admin_headers):
        resp = await client.delete(f"/products/{seed.laptop_id}", headers=admin_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "PRODUCT_HAS_STOCK"
        assert body["details"] == {"total_stock": 10}

        detail = await client.get(f"/products/{seed.laptop_id}", headers=admin_headers)
        assert detail.json()["data"]["status"] == "active"

    async def test_retire_without_stock(self, client, seed, admin_headers):
        created = await client.post("/products", json=NEW_PRODUCT, headers=admin_headers)
        product_id = created.json()["data"]["id"]

        resp = await client.delete(f"/products/{product_id}", headers=admin_headers)
        assert resp.status_code == 200

        assert (await client.get(f"/products/{product_id}", headers=admin_headers)).status_code == 404

        active = await client.get("/products", headers=admin_headers)
        assert [p["sku"] for p in active.json()["data"]["items"]] == ["LAP-001"]

        retired = await client.get("/products", params={"is_active": False}, headers=admin_headers)
        assert [p["sku"] for p in retired.json()["data"]["items"]] == ["MOU-001"]

    async def test_retired_product_rejects_stock_changes(self, client, seed, admin_headers):
        created = await client.post("/products", json=NEW_PRODUCT, headers=admin_headers)
        product_id = created.json()["data"]["id"]
        await client.delete(f"/products/{product_id}", headers=admin_headers)

        resp = await client.post(
            "/inventory",
            json={
                "product_id": product_id,
                "location_id": seed.main_id,
                "quantity": 1,
                "transaction_type": "in",
                "reason": "Receiving",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "PRODUCT_NOT_FOUND"

    async def test_manager_can_create_products(self, client, seed, manager_headers):
        resp = await client.post("/products", json=NEW_PRODUCT, headers=manager_headers)
        assert resp.status_code == 201


# =============================================================================
# LOCATIONS
# =============================================================================


class TestLocations:
    async def test_create_duplicate_name(self, client, seed, admin_headers):
        resp = await client.post("/locations", json={"name": "Main Warehouse"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "LOCATION_NAME_EXISTS"

    async def test_detail_has_managers_and_summary(self, client, seed, admin_headers):
        resp = await client.get(f"/locations/{seed.main_id}", headers=admin_headers)
        assert resp.status_code == 200

        data = resp.json()["data"]
        assert [m["username"] for m in data["managers"]] == ["manager1"]
        assert data["inventory_summary"] == {
            "total_products": 1,
            "total_quantity": 10,
            "total_reserved": 0,
        }

    async def test_retire_blocked_by_stock(self, client, seed, admin_headers):
        resp = await client.delete(f"/locations/{seed.main_id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "LOCATION_HAS_STOCK"

    @pytest.mark.parametrize("name", [None, "", "   "])
    async def test_update_rejects_cleared_name(self, client, seed, admin_headers, name):
        resp = await client.put(
            f"/locations/{seed.downtown_id}",
            json={"name": name},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "VALIDATION_ERROR"

        location = await client.get(f"/locations/{seed.downtown_id}", headers=admin_headers)
        assert location.json()["data"]["name"] == "Downtown Store"

    @pytest.mark.parametrize("name", ["", "x" * 101])
    async def test_create_rejects_bad_name(self, client, seed, admin_headers, name):
        resp = await client.post("/locations", json={"name": name}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "VALIDATION_ERROR"

    async def test_retire_blocked_by_managers(self, client, seed, admin_headers):
        await client.post(
            f"/locations/{seed.downtown_id}/assign-manager",
            json={"user_id": seed.manager_id},
            headers=admin_headers,
        )

        resp = await client.delete(f"/locations/{seed.downtown_id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "LOCATION_HAS_MANAGERS"

        removed = await client.delete(
            f"/locations/{seed.downtown_id}/remove-manager/{seed.manager_id}",
            headers=admin_headers,
        )
        assert removed.status_code == 200

        retired = await client.delete(f"/locations/{seed.downtown_id}", headers=admin_headers)
        assert retired.status_code == 200

        listing = await client.get("/locations", headers=admin_headers)
        assert [l["name"] for l in listing.json()["data"]["items"]] == ["Main Warehouse"]

    async def test_assign_rules(self, client, seed, admin_headers):
        duplicate = await client.post(
            f"/locations/{seed.main_id}/assign-manager",
            json={"user_id": seed.manager_id},
            headers=admin_headers,
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["error_code"] == "MANAGER_ALREADY_ASSIGNED"

        not_a_manager = await client.post(
            f"/locations/{seed.downtown_id}/assign-manager",
            json={"user_id": seed.admin_id},
            headers=admin_headers,
        )
        assert not_a_manager.status_code == 404
        assert not_a_manager.json()["error_code"] == "MANAGER_NOT_FOUND"

    async def test_remove_missing_assignment(self, client, seed, admin_headers):
        resp = await client.delete(
            f"/locations/{seed.downtown_id}/remove-manager/{seed.manager_id}",
            headers=admin_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "ASSIGNMENT_NOT_FOUND"

    async def test_location_inventory(self, client, seed, admin_headers):
        resp = await client.get(f"/locations/{seed.main_id}/inventory", headers=admin_headers)
        assert resp.status_code == 200
        assert [i["quantity"] for i in resp.json()["data"]] == [10]
