from datetime import datetime, timezone

from app.core.dependencies import get_session_factory
from app.storage.adapter import StorageAdapter
from app.storage.purge import PurgeScheduler
from main import app


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "healthy"


async def test_upsert_and_find_record(client):
    response = await client.put(
        "/api/v1/records/Session/s1",
        json={"payload": {"uid": "u1", "accountId": "alice"}, "expires_in": 600},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = await client.get("/api/v1/records/Session/s1")
    assert response.status_code == 200
    assert response.json()["data"] == {"uid": "u1", "accountId": "alice"}


async def test_find_missing_record(client):
    response = await client.get("/api/v1/records/Session/missing")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert "missing" in data["message"]


async def test_secondary_lookups(client):
    await client.put(
        "/api/v1/records/Session/s1", json={"payload": {"uid": "u1"}, "expires_in": 600}
    )
    await client.put(
        "/api/v1/records/DeviceCode/d1",
        json={"payload": {"userCode": "WXYZ-1234"}, "expires_in": 600},
    )

    response = await client.get("/api/v1/records/Session/uid/u1")
    assert response.status_code == 200
    assert response.json()["data"] == {"uid": "u1"}

    response = await client.get("/api/v1/records/DeviceCode/user-code/WXYZ-1234")
    assert response.status_code == 200
    assert response.json()["data"] == {"userCode": "WXYZ-1234"}

    response = await client.get("/api/v1/records/DeviceCode/user-code/nope")
    assert response.status_code == 404


async def test_consume_record(client):
    await client.put(
        "/api/v1/records/AuthorizationCode/c1",
        json={"payload": {"grantId": "g1"}, "expires_in": 600},
    )

    response = await client.post("/api/v1/records/AuthorizationCode/c1/consume")
    assert response.status_code == 200

    response = await client.get("/api/v1/records/AuthorizationCode/c1")
    consumed = response.json()["data"]["consumed"]
    assert datetime.fromisoformat(consumed).tzinfo is not None


async def test_consume_missing_record(client):
    response = await client.post("/api/v1/records/AuthorizationCode/nope/consume")
    assert response.status_code == 404
    assert response.json()["data"] == {"id": "nope"}


async def test_destroy_record(client):
    await client.put("/api/v1/records/Session/s1", json={"payload": {"uid": "u1"}})

    for _ in range(2):
        response = await client.delete("/api/v1/records/Session/s1")
        assert response.status_code == 200

    response = await client.get("/api/v1/records/Session/s1")
    assert response.status_code == 404


async def test_revoke_grant(client):
    for record_id, grant_id in [("t1", "g1"), ("t2", "g1"), ("t3", "g2")]:
        await client.put(
            f"/api/v1/records/AccessToken/{record_id}",
            json={"payload": {"grantId": grant_id}, "expires_in": 600},
        )

    response = await client.delete("/api/v1/records/AccessToken/grants/g1")
    assert response.status_code == 200
    assert response.json()["data"] == {"grant_id": "g1", "deleted": 2}

    response = await client.get("/api/v1/records/AccessToken")
    assert [r["id"] for r in response.json()["data"]] == ["t3"]


async def test_list_records_in_namespace(client):
    await client.put("/api/v1/records/Client/app1", json={"payload": {"n": 1}})
    await client.put("/api/v1/records/Session/s1", json={"payload": {"n": 2}})

    response = await client.get("/api/v1/records/Client")
    assert response.status_code == 200
    [record] = response.json()["data"]
    assert record["name"] == "Client"
    assert record["id"] == "app1"
    assert record["expires_at"] is None


async def test_upsert_validation(client):
    response = await client.put(
        "/api/v1/records/Session/s1", json={"payload": {"n": 1}, "expires_in": -5}
    )
    assert response.status_code == 422
    assert "expires_in" in response.json()["data"]["errors"]

    response = await client.put(
        "/api/v1/records/Session/s1", json={"payload": ["not", "a", "mapping"]}
    )
    assert response.status_code == 422


async def test_purge_endpoint(client, session_factory):
    past = datetime(2020, 1, 1, tzinfo=timezone.utc)
    seeder = StorageAdapter(
        "AccessToken",
        session_factory=session_factory,
        purge=PurgeScheduler(every=1000),
        clock=lambda: past,
    )
    await seeder.upsert("old", {"grantId": "g1"}, 60)
    await seeder.upsert("keep", {"grantId": "g2"})

    response = await client.post("/api/v1/records/AccessToken/purge")
    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": 1}

    response = await client.get("/api/v1/records/AccessToken")
    assert [r["id"] for r in response.json()["data"]] == ["keep"]


async def test_list_records_reports_liveness(client, session_factory):
    past = datetime(2020, 1, 1, tzinfo=timezone.utc)
    seeder = StorageAdapter(
        "AccessToken",
        session_factory=session_factory,
        purge=PurgeScheduler(every=1000),
        clock=lambda: past,
    )
    await seeder.upsert("old", {"n": 1}, 60)
    await client.put(
        "/api/v1/records/AccessToken/new", json={"payload": {"n": 2}, "expires_in": 600}
    )

    response = await client.get("/api/v1/records/AccessToken")
    assert {r["id"]: r["live"] for r in response.json()["data"]} == {
        "new": True,
        "old": False,
    }


async def test_unreachable_database_returns_503(client, unreachable_session_factory):
    app.dependency_overrides[get_session_factory] = lambda: unreachable_session_factory

    response = await client.get("/api/v1/records/Session/s1")

    assert response.status_code == 503
    assert response.json()["data"] == {"operation": "find"}
