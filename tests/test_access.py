"""
Access control tests.

Verifies:
- every protected route requires a bearer token
- admin-only areas refuse managers
- managers only see and touch their assigned locations
"""

import logging

import pytest


PROTECTED = [
    ("get", "/auth/profile"),
    ("get", "/users"),
    ("get", "/products"),
    ("get", "/locations"),
    ("get", "/inventory"),
    ("get", "/inventory/transactions"),
    ("get", "/sales"),
    ("get", "/sales/analytics/summary"),
    ("get", "/activities"),
]


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize("method,path", PROTECTED)
    async def test_requires_token(self, client, seed, method, path):
        resp = await getattr(client, method)(path)
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    async def test_garbage_token(self, client, seed):
        resp = await client.get("/products", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    async def test_health_check_is_public(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200


class TestAdminOnly:
    @pytest.mark.parametrize("path", ["/users", "/locations", "/activities"])
    async def test_manager_refused(self, client, seed, manager_headers, path):
        resp = await client.get(path, headers=manager_headers)
        assert resp.status_code == 403

    async def test_admin_creates_manager(self, client, seed, admin_headers):
        resp = await client.post(
            "/users",
            json={
                "username": "manager2",
                "email": "manager2@example.com",
                "password": "secret123",
                "first_name": "Mia",
                "last_name": "Manager",
                "role": "manager",
                "location_ids": [seed.downtown_id],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        assert [l["name"] for l in data["assigned_locations"]] == ["Downtown Store"]

        duplicate = await client.post(
            "/users",
            json={
                "username": "manager2",
                "email": "other@example.com",
                "password": "secret123",
                "first_name": "Mia",
                "last_name": "Manager",
                "role": "manager",
            },
            headers=admin_headers,
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["error_code"] == "USER_EXISTS"

    async def test_admin_cannot_demote_self(self, client, seed, admin_headers):
        resp = await client.put(
            f"/users/{seed.admin_id}",
            json={"role": "manager"},
            headers=admin_headers,
        )
        assert resp.status_code == 400


class TestLocationScope:
    async def test_manager_sees_only_assigned_inventory(
        self, client, seed, admin_headers, manager_headers
    ):
        await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.downtown_id,
                "quantity": 2,
                "transaction_type": "in",
                "reason": "Receiving",
            },
            headers=admin_headers,
        )

        admin_view = await client.get("/inventory", headers=admin_headers)
        assert admin_view.json()["data"]["pagination"]["total"] == 2

        manager_view = await client.get("/inventory", headers=manager_headers)
        items = manager_view.json()["data"]["items"]
        assert [i["location_id"] for i in items] == [seed.main_id]

        txs = await client.get("/inventory/transactions", headers=manager_headers)
        assert {t["location_id"] for t in txs.json()["data"]["items"]} == {seed.main_id}

    @pytest.mark.parametrize(
        "path",
        [
            "/inventory/location/{downtown}",
            "/inventory?location_id={downtown}",
            "/inventory/transactions?location_id={downtown}",
            "/sales?location_id={downtown}",
        ],
    )
    async def test_manager_refused_other_location(self, client, seed, manager_headers, path):
        resp = await client.get(path.format(downtown=seed.downtown_id), headers=manager_headers)
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "LOCATION_ACCESS_DENIED"

    async def test_manager_stock_change_other_location(self, client, seed, manager_headers):
        resp = await client.post(
            "/inventory",
            json={
                "product_id": seed.laptop_id,
                "location_id": seed.downtown_id,
                "quantity": 1,
                "transaction_type": "in",
                "reason": "Receiving",
            },
            headers=manager_headers,
        )
        assert resp.status_code == 403

    async def test_deactivated_manager_token_rejected(self, client, seed, admin_headers, manager_headers):
        await client.put(
            f"/users/{seed.manager_id}",
            json={"is_active": False},
            headers=admin_headers,
        )

        resp = await client.get("/products", headers=manager_headers)
        assert resp.status_code in (401, 403)


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestAccessLog:
    async def test_refused_request_logs_user(self, client, seed, manager_headers):
        access = logging.getLogger("access")
        handler = _Collect()
        previous_level = access.level
        access.addHandler(handler)
        access.setLevel(logging.INFO)
        try:
            resp = await client.post(
                "/inventory",
                json={
                    "product_id": seed.laptop_id,
                    "location_id": seed.downtown_id,
                    "quantity": 1,
                    "transaction_type": "in",
                    "reason": "Receiving",
                },
                headers=manager_headers,
            )
        finally:
            access.removeHandler(handler)
            access.setLevel(previous_level)

        assert resp.status_code == 403
        record = handler.records[-1]
        assert record.status_code == 403
        assert record.user_id == seed.manager_id

    async def test_anonymous_request_logs_no_user(self, client, seed):
        access = logging.getLogger("access")
        handler = _Collect()
        previous_level = access.level
        access.addHandler(handler)
        access.setLevel(logging.INFO)
        try:
            resp = await client.get("/products")
        finally:
            access.removeHandler(handler)
            access.setLevel(previous_level)

        assert resp.status_code == 401
        assert handler.records[-1].user_id is None
