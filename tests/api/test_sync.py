"""API tests for sync endpoints."""

from httpx import AsyncClient

from src.core.exceptions import RemoteStoreError


async def _queue_user(client: AsyncClient, name: str = "Dana") -> dict:
    response = await client.post("/api/device-users", json={"name": name})
    assert response.status_code == 201
    return response.json()


class TestSyncStatus:
    async def test_status_counts_pending(self, client: AsyncClient):
        await _queue_user(client)

        response = await client.get("/api/sync/status")

        assert response.status_code == 200
        body = response.json()
        assert body["online"] is False
        assert body["in_progress"] is False
        assert body["last_sync_at"] is None
        assert body["queue"] == {"pending": 1, "synced": 0, "poisoned": 0}


class TestTrigger:
    async def test_offline_not_started(self, client: AsyncClient):
        response = await client.post("/api/sync/trigger")

        assert response.status_code == 200
        assert response.json()["started"] is False

    async def test_online_pushes_and_pulls(self, client: AsyncClient, api_engine, remote_store):
        user = await _queue_user(client)
        api_engine.set_online(True)
        await api_engine.wait_idle()
        await _queue_user(client, "Lee")

        response = await client.post("/api/sync/trigger")

        body = response.json()
        assert body["started"] is True
        assert body["pushed"] == 1
        assert body["pulled"]["device_users"] == 2
        assert user["id"] in remote_store.tables["device_users"]
        status = (await client.get("/api/sync/status")).json()
        assert status["last_sync_at"] is not None
        assert status["queue"]["pending"] == 0


class TestConnectivity:
    async def test_going_online_drains_queue(self, client: AsyncClient, api_engine, remote_store):
        await _queue_user(client)

        response = await client.put("/api/sync/connectivity", json={"online": True})
        assert response.status_code == 200
        assert response.json()["online"] is True
        await api_engine.wait_idle()

        assert len(remote_store.tables["device_users"]) == 1
        queue = (await client.get("/api/sync/queue")).json()
        assert queue == []

    async def test_going_offline(self, client: AsyncClient, api_engine):
        api_engine.set_online(True)
        await api_engine.wait_idle()

        response = await client.put("/api/sync/connectivity", json={"online": False})

        assert response.json()["online"] is False


class TestQueueAdmin:
    async def _poison(self, client: AsyncClient, api_engine, remote_store) -> dict:
        remote_store.fail_tables["device_users"] = RemoteStoreError("bad column", status_code=400)
        await _queue_user(client)
        api_engine.set_online(True)
        await api_engine.wait_idle()
        [entry] = (await client.get("/api/sync/queue")).json()
        assert entry["poisoned"] is True
        return entry

    async def test_list_excluding_poisoned(self, client: AsyncClient, api_engine, remote_store):
        await self._poison(client, api_engine, remote_store)

        response = await client.get("/api/sync/queue", params={"include_poisoned": "false"})

        assert response.json() == []

    async def test_requeue_requires_admin(self, client: AsyncClient, api_engine, remote_store):
        entry = await self._poison(client, api_engine, remote_store)

        response = await client.post(f"/api/sync/queue/{entry['id']}/requeue")

        assert response.status_code == 401

    async def test_requeue(self, client: AsyncClient, api_engine, remote_store, admin_headers):
        entry = await self._poison(client, api_engine, remote_store)

        response = await client.post(
            f"/api/sync/queue/{entry['id']}/requeue", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["poisoned"] is False
        assert response.json()["attempts"] == 0

        del remote_store.fail_tables["device_users"]
        report = (await client.post("/api/sync/trigger")).json()
        assert report["pushed"] == 1

    async def test_requeue_unknown(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/sync/queue/nope/requeue", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "QUEUE_ENTRY_NOT_FOUND"

    async def test_discard(self, client: AsyncClient, api_engine, remote_store, admin_headers):
        entry = await self._poison(client, api_engine, remote_store)

        response = await client.delete(f"/api/sync/queue/{entry['id']}", headers=admin_headers)

        assert response.status_code == 204
        assert (await client.get("/api/sync/queue")).json() == []

    async def test_discard_requires_admin(self, client: AsyncClient):
        response = await client.delete("/api/sync/queue/nope")
        assert response.status_code == 401
