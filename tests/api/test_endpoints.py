"""
API endpoint tests
"""

import asyncio
import json
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from api.main import app
from api.dependencies import get_db, get_generator, get_record_store
from core.config import settings
from tests.fakes import FakeGenerator, FakeRecordStore


@pytest.fixture
def db_session():
    session = AsyncMock()
    session.execute = AsyncMock(return_value=None)
    return session


@pytest.fixture
def generator():
    return FakeGenerator('{"greeting": "Hello"}')


@pytest.fixture
def client(db_session, generator, record_store):
    """Create test client with database, store and generator overrides"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_generator] = lambda: generator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# Health
# ============================================================================

def test_health_endpoint_healthy(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database_connected"] is True
    assert data["generation_available"] is True
    assert "timestamp" in data


def test_health_degraded_without_generation(client, generator):
    generator.available = False

    data = client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["generation_available"] is False


def test_health_unhealthy_without_database(client, db_session):
    db_session.execute.side_effect = OSError("connection refused")

    data = client.get("/health").json()

    assert data["status"] == "unhealthy"
    assert data["database_connected"] is False


def test_request_id_is_propagated(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-API-Latency-ms" in response.headers


def test_root_lists_endpoints(client):
    data = client.get("/").json()
    assert data["endpoints"]["orchestrate"] == "/orchestrate"


# ============================================================================
# Transform
# ============================================================================

def test_transform_inline_data(client):
    response = client.post("/transform", json={
        "data": [{"id": 1, "name": "  Ada  ", "note": ""}],
        "transformations": {
            "clean": {"textFields": ["name"]},
            "enrich": {"instruction": "Add a greeting", "fields": ["name"]}
        }
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == [{"id": 1, "name": "Ada", "greeting": "Hello"}]
    assert body["transformations"]["clean"]["applied"] is True
    assert body["transformations"]["enrich"]["applied"] is True
    assert "recordId" not in body


def test_transform_step_failure_is_reported_not_raised(client):
    response = client.post("/transform", json={
        "data": {"id": 1},
        "transformations": {"validate": {}}
    })

    assert response.status_code == 200
    outcome = response.json()["transformations"]["validate"]
    assert outcome["applied"] is False
    assert outcome["error"] == "Validation schema is required"


def test_transform_validation_report(client):
    response = client.post("/transform", json={
        "data": [{"id": 1, "name": "x"}, {"id": 2}],
        "transformations": {"validate": {"schema": {"required": ["id", "name"]}}}
    })

    assert response.status_code == 200
    assert response.json()["transformations"] == {
        "validate": {"applied": True, "isValid": False, "invalidCount": 1}
    }


def test_transform_clean_only_report(client):
    response = client.post("/transform", json={
        "data": {"name": "  Alice  ", "email": "", "age": None},
        "transformations": {"clean": {"removeEmpty": True, "textFields": ["name"]}}
    })

    body = response.json()
    assert body["data"] == {"name": "Alice"}
    assert body["transformations"] == {"clean": {"applied": True}}


def test_transform_non_object_step_options(client):
    response = client.post("/transform", json={
        "data": {"id": 1},
        "transformations": {"clean": "yes"}
    })

    assert response.status_code == 200
    assert response.json()["transformations"]["clean"] == {
        "applied": False,
        "error": "Options for step 'clean' must be an object"
    }


def test_transform_save_to_db(client, record_store):
    response = client.post("/transform", json={
        "data": [{"id": 1}],
        "transformations": {"clean": {}},
        "options": {"saveToDb": True}
    })

    body = response.json()
    record = record_store.records[next(iter(record_store.records))]
    assert body["recordId"] == str(record.id)
    assert record.status.value == "transformed"
    assert record.record_metadata["transformations"]["clean"]["applied"] is True


def test_transform_save_failure_is_a_warning(client, record_store):
    record_store.fail_writes = True

    response = client.post("/transform", json={"data": [{"id": 1}], "options": {"saveToDb": True}})

    assert response.status_code == 200
    assert response.json()["warning"] == "Failed to save data to database"


def test_transform_requires_data(client):
    response = client.post("/transform", json={"transformations": {"clean": {}}})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["message"] == "Data or recordId is required"
    assert body["error"]["status"] == 400


def test_transform_unknown_record(client):
    response = client.post("/transform", json={"recordId": "550e8400-e29b-41d4-a716-446655440000"})

    assert response.status_code == 404
    assert response.json()["error"]["message"] == (
        "Record not found with ID: 550e8400-e29b-41d4-a716-446655440000"
    )


# ============================================================================
# Extract / Load
# ============================================================================

def test_extract_file_source(client, record_store, tmp_path):
    path = tmp_path / "users.json"
    path.write_text(json.dumps([{"id": 1}, {"id": 2}]))

    response = client.post("/extract", json={"source": {"type": "file", "path": str(path)}})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == [{"id": 1}, {"id": 2}]

    record = record_store.records[next(iter(record_store.records))]
    assert body["recordId"] == str(record.id)
    assert record.source["type"] == "file"


def test_extract_without_saving(client, record_store, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("one\ntwo")

    response = client.post("/extract", json={
        "source": {"type": "file", "path": str(path)},
        "options": {"saveToDb": False}
    })

    assert response.json() == {"success": True, "data": [{"content": "one"}, {"content": "two"}]}
    assert record_store.records == {}


def test_extract_unsupported_source(client):
    response = client.post("/extract", json={"source": {"type": "ftp"}})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["message"] == "Unsupported source type: ftp"
    assert error["details"]["supported"] == ["api", "file", "record"]


def test_extract_api_source_requires_url(client):
    response = client.post("/extract", json={"source": {"type": "api"}})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "API URL is required"


def test_extract_missing_file(client, tmp_path):
    response = client.post("/extract", json={"source": {"type": "file", "path": str(tmp_path / "none.json")}})

    assert response.status_code == 404


@pytest.mark.parametrize("path", ["/etc/passwd", "../../../etc/passwd"])
def test_extract_file_outside_data_dir(client, path):
    response = client.post("/extract", json={"source": {"type": "file", "path": path}})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == f"File path must be inside the data directory: {path}"


def test_load_file_outside_data_dir(client, data_dir):
    response = client.post("/load", json={
        "data": [{"id": 1}],
        "destination": {"type": "file", "path": "../overwritten.json"}
    })

    assert response.status_code == 400
    assert not (data_dir.parent / "overwritten.json").exists()


def test_extract_requires_source(client):
    response = client.post("/extract", json={})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Source configuration is required"


def test_invalid_body_is_a_bad_request(client):
    response = client.post("/extract", json={"source": {"name": "no type"}})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["message"] == "Invalid request"
    assert error["details"]["errors"]


def test_load_to_file(client, tmp_path):
    path = tmp_path / "out.csv"

    response = client.post("/load", json={
        "data": [{"id": "1", "name": "Ada"}],
        "destination": {"type": "file", "path": str(path)}
    })

    assert response.status_code == 200
    body = response.json()
    assert body["result"]["count"] == 1
    assert body["result"]["format"] == "csv"
    assert "recordId" not in body
    assert path.read_text() == "id,name\n1,Ada\n"


def test_load_stored_record_to_database(client, record_store):
    record = asyncio.run(record_store.save([{"id": 1}], transformed=[{"id": 1, "tag": "x"}]))

    response = client.post("/load", json={"recordId": str(record.id), "destination": {"type": "database"}})

    body = response.json()
    assert body["recordId"] == str(record.id)
    assert body["result"]["created"] is False
    assert record.status.value == "loaded"
    assert record.record_metadata["load_result"]["count"] == 1


def test_load_unsupported_destination(client):
    response = client.post("/load", json={"data": [{"id": 1}], "destination": {"type": "s3"}})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Unsupported destination type: s3"


def test_load_requires_destination(client):
    response = client.post("/load", json={"data": [{"id": 1}]})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Destination configuration is required"


# ============================================================================
# Orchestrate
# ============================================================================

def test_orchestrate_file_to_file(client, record_store, tmp_path):
    source = tmp_path / "in.json"
    source.write_text(json.dumps([{"id": 1, "name": " Ada "}]))
    target = tmp_path / "out" / "result.json"

    response = client.post("/orchestrate", json={
        "source": {"type": "file", "path": str(source)},
        "transformations": {"clean": {"textFields": ["name"]}},
        "destination": {"type": "file", "path": str(target)}
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["extractResult"] == {"success": True}
    assert body["transformResult"]["success"] is True
    assert body["transformResult"]["transformations"]["clean"]["applied"] is True
    assert body["loadResult"]["count"] == 1
    assert body["processingDurationMs"] >= 0
    assert json.loads(target.read_text()) == [{"id": 1, "name": "Ada"}]

    record = record_store.records[next(iter(record_store.records))]
    assert body["recordId"] == str(record.id)
    assert record_store.runs[0].status.value == "success"


def test_orchestrate_stops_at_failing_phase(client, record_store, tmp_path):
    response = client.post("/orchestrate", json={
        "source": {"type": "file", "path": str(tmp_path / "missing.json")},
        "destination": {"type": "file", "path": str(tmp_path / "out.json")}
    })

    assert response.status_code == 404
    assert not (tmp_path / "out.json").exists()
    assert record_store.runs[0].status.value == "failed"


# ============================================================================
# Records and authentication
# ============================================================================

def test_get_record(client, record_store):
    record = asyncio.run(record_store.save({"id": 1}, source={"type": "inline", "name": "test"}))

    response = client.get(f"/records/{record.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(record.id)
    assert body["raw"] == {"id": 1}
    assert body["status"] == "extracted"


def test_get_unknown_record(client):
    response = client.get("/records/not-a-uuid")

    assert response.status_code == 404
    assert response.json()["error"]["details"] == {"record_id": "not-a-uuid"}


def test_api_key_required(client, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_AUTH", True)
    monkeypatch.setattr(settings, "API_KEY", "secret")

    missing = client.post("/transform", json={"data": {"id": 1}})
    wrong = client.post("/transform", json={"data": {"id": 1}}, headers={"X-API-Key": "nope"})
    right = client.post("/transform", json={"data": {"id": 1}}, headers={"X-API-Key": "secret"})

    assert missing.status_code == 401
    assert missing.json()["error"]["message"] == "API key is missing"
    assert wrong.status_code == 403
    assert right.status_code == 200


def test_health_is_open_when_auth_required(client, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_AUTH", True)
    monkeypatch.setattr(settings, "API_KEY", "secret")

    assert client.get("/health").status_code == 200
