"""HTTP surface: routing, owner header and error envelopes"""

import base64

import httpx
import pytest

from pantry.main import create_app
from fakes import MemoryObjectStore, ScriptedProvider, gemini_body, gemini_error

OWNER = {"X-Owner-Id": "owner-1"}


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
async def client(db_setup, settings, provider):
    app = create_app(settings, store=MemoryObjectStore(), provider=provider)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert "x-request-id" in r.headers


@pytest.mark.asyncio
async def test_status_reports_configuration(client):
    r = await client.get("/ops/status")
    body = r.json()
    assert body["storage_driver"] == "local"
    assert body["local_only_media"] is True
    assert body["inference_configured"] is True


@pytest.mark.asyncio
async def test_db_health(client):
    r = await client.get("/ops/db-health")
    assert r.json() == {"db_ok": True}


@pytest.mark.asyncio
async def test_missing_owner_header_is_401(client):
    r = await client.get("/items/")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_item_lifecycle(client, photo):
    r = await client.post("/items/", json={"name": "Milk", "quantity": 2, "unit": "l", "photo_uri": str(photo)}, headers=OWNER)
    assert r.status_code == 201
    item = r.json()
    assert item["photo"]["remote_url"] is None
    assert item["photo"]["local_path"]

    r = await client.post("/items/", json={"name": "MILK"}, headers=OWNER)
    assert r.status_code == 409
    assert r.json()["error"] == "duplicate_name"
    assert 'An item named "MILK" already exists' in r.json()["detail"]

    r = await client.post(f"/items/{item['id']}/consume", json={"qty": 0.5}, headers=OWNER)
    assert r.status_code == 200
    assert r.json()["item"]["quantity"] == 1.5
    assert r.json()["usage"]["previous_quantity"] == 2

    r = await client.get("/usage/", headers=OWNER)
    assert len(r.json()) == 1

    r = await client.get("/items/", headers={"X-Owner-Id": "someone-else"})
    assert r.json() == []

    r = await client.delete(f"/items/{item['id']}", headers=OWNER)
    assert r.json() == {"ok": True}
    r = await client.get(f"/items/{item['id']}", headers=OWNER)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_sync_endpoint_promotes_photos(client, photo):
    await client.post("/items/", json={"name": "Eggs", "photo_uri": str(photo)}, headers=OWNER)
    await client.put("/profile/", json={"username": "sam", "photo_uri": str(photo)}, headers=OWNER)

    r = await client.post("/sync/", headers=OWNER)
    assert r.status_code == 200
    report = r.json()
    assert report["succeeded"] == 2
    assert report["status"] == "clean"

    profile = (await client.get("/profile/", headers=OWNER)).json()
    assert profile["photo"]["remote_url"] == "https://cdn.test/users/owner-1/profile/owner-1.jpg"
    assert profile["photo"]["local_path"] is None


@pytest.mark.asyncio
async def test_profile_missing_is_404(client):
    r = await client.get("/profile/", headers=OWNER)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_label_falls_back_across_models(client, provider):
    provider.responses.extend([
        gemini_error("quota"),
        gemini_body('```json\n{"primary": "Tomato", "labels": ["Tomato", {"name": "Vine", "confidence": 0.4}]}\n```'),
    ])
    image = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()

    r = await client.post("/inference/label", json={"image_b64": image}, headers=OWNER)

    assert r.status_code == 200
    assert r.json() == {
        "primary": "tomato",
        "labels": [{"name": "tomato", "confidence": None}, {"name": "vine", "confidence": 0.4}],
    }
    assert provider.calls[1]["image_bytes"] == b"\xff\xd8jpeg"


@pytest.mark.asyncio
async def test_label_exhaustion_is_502(client, provider):
    provider.responses.extend([gemini_error("down")] * 3)
    image = base64.b64encode(b"jpeg").decode()
    r = await client.post("/inference/label", json={"image_b64": image}, headers=OWNER)
    assert r.status_code == 502
    assert r.json()["error"] == "inference_failed"
    assert len(provider.calls) == 3


@pytest.mark.asyncio
async def test_label_rejects_bad_base64(client):
    r = await client.post("/inference/label", json={"image_b64": "***"}, headers=OWNER)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_label_without_api_key_is_503(db_setup, settings):
    app = create_app(settings, store=MemoryObjectStore())
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.post("/inference/label", json={"image_b64": base64.b64encode(b"x").decode()}, headers=OWNER)
    assert r.status_code == 503


@pytest.mark.asyncio
async def test_recipe_rewrite(client, provider):
    provider.responses.append(gemini_body("Chop onions.\nFry gently."))
    recipe = (await client.post("/recipes/", json={"name": "Onion soup"}, headers=OWNER)).json()

    r = await client.post(f"/recipes/{recipe['id']}/rewrite", headers=OWNER)

    assert r.status_code == 200
    assert r.json() == {"recipe_id": recipe["id"], "steps": ["Chop onions.", "Fry gently."]}
