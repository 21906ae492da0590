"""
HTTP smoke tests for the stream-item routers against a temporary store.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Garante que o pacote streamlist seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from streamlist.app import create_app  # noqa: E402
from streamlist.core.config import Settings  # noqa: E402
from streamlist.core.lifecycle import ShutdownRegistry  # noqa: E402
from streamlist.repositories.datastore import DataStore  # noqa: E402


@pytest.fixture()
def app_env(tmp_path):
    """App wired to a store in tmp_path, with its own shutdown registry."""
    registry = ShutdownRegistry()
    settings = Settings(
        app_env="test",
        data_dir=str(tmp_path),
        flush_delay_seconds=30.0,
        json_indent=None,
        stream_items_store="stream-items",
        log_level="INFO",
        host="127.0.0.1",
        port=3000,
    )
    store = DataStore("stream-items", directory=str(tmp_path), flush_delay=30.0, registry=registry)
    app = create_app(settings=settings, store=store, registry=registry)
    return app, store, registry, tmp_path / "stream-items.ds.json"


def test_crud_flow(app_env):
    app, store, _, _ = app_env
    with TestClient(app) as client:
        assert client.get("/stream-item").json() == []

        resp = client.post("/stream-item", json={"name": "Celeste"})
        assert resp.status_code == 201
        assert resp.json() == {"id": 1, "name": "Celeste"}

        resp = client.post("/stream-item", json={"id": 5, "name": "Portal 2", "coop": True})
        assert resp.status_code == 201

        assert [i["id"] for i in client.get("/stream-item").json()] == [1, 5]
        assert [i["id"] for i in client.get("/stream-item", params={"coop": "true"}).json()] == [5]
        assert [i["id"] for i in client.get("/stream-item", params={"coop": "false"}).json()] == [1]

        resp = client.put("/stream-item/1", json={"coop": True})
        assert resp.status_code == 200
        assert resp.json() == {"id": 1, "name": "Celeste", "coop": True}
        assert client.get("/stream-item/1").json()["coop"] is True

        resp = client.delete("/stream-item/1")
        assert resp.json() == {"ok": True, "deleted": True}
        resp = client.delete("/stream-item/1")
        assert resp.json() == {"ok": True, "deleted": False}

    assert store.identifiers == {5}


def test_errors_are_mapped_to_status_codes(app_env):
    app, _, _, _ = app_env
    with TestClient(app) as client:
        client.post("/stream-item", json={"id": 1, "name": "a"})

        resp = client.post("/stream-item", json={"id": 1, "name": "dup"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "duplicate_key"

        resp = client.put("/stream-item/99", json={"coop": True})
        assert resp.status_code == 404
        assert resp.json()["ok"] is False

        assert client.get("/stream-item/99").status_code == 404

        resp = client.put("/stream-item/1", json={"id": 2})
        assert resp.status_code == 400
        assert resp.json()["error"] == "immutable_key"

        assert client.post("/stream-item", json={"name": ""}).status_code == 400
        assert client.post("/stream-item", json={"name": "x", "coop": "yes"}).status_code == 400
        assert client.post("/stream-item", json={"name": "x", "rating": 5}).status_code == 400
        assert client.delete("/stream-item").status_code == 400


def test_malformed_bodies_get_400_not_422(app_env):
    app, store, _, _ = app_env
    with TestClient(app) as client:
        client.post("/stream-item", json={"id": 1, "name": "a"})

        resp = client.post("/stream-item", json=[1, 2])
        assert resp.status_code == 400
        assert resp.json()["ok"] is False
        assert resp.json()["error"] == "invalid_payload"

        resp = client.put(
            "/stream-item/1",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "invalid_payload", "message": "Corpo deve ser JSON valido."}

        resp = client.put("/stream-item/1", json="a")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_payload"

    assert store.read_all() == [{"id": 1, "name": "a"}]


def test_bulk_delete_by_coop(app_env):
    app, store, _, _ = app_env
    with TestClient(app) as client:
        client.post("/stream-item", json={"name": "a", "coop": True})
        client.post("/stream-item", json={"name": "b"})
        client.post("/stream-item", json={"name": "c", "coop": True})

        resp = client.delete("/stream-item", params={"coop": "true"})
        assert resp.json() == {"ok": True, "deleted": 2}

    assert [i["name"] for i in store.read_all()] == ["b"]


def test_lifespan_shutdown_flushes_pending_changes(app_env):
    app, store, registry, path = app_env
    with TestClient(app) as client:
        client.post("/stream-item", json={"id": 1, "name": "a"})
        client.post("/stream-item", json={"id": 2, "name": "b"})
        # The 30s quiet window has not elapsed yet.
        assert json.loads(path.read_text(encoding="utf-8")) == []

    assert registry.reason == "lifespan-shutdown"
    assert store.emergency_fired
    assert json.loads(path.read_text(encoding="utf-8")) == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]


def test_health_reports_store_state(app_env):
    app, _, _, path = app_env
    with TestClient(app) as client:
        body = client.get("/health").json()
        assert body["ok"] is True
        assert body["store"] == "stream-items"
        assert body["path"] == str(path.resolve())
        assert body["state"] == "clean"

        client.post("/stream-item", json={"name": "a"})
        body = client.get("/health").json()
        assert body["records"] == 1
        assert body["state"] == "dirty-pending"
