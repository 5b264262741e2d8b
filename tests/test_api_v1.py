import pytest
from fastapi.testclient import TestClient

from statustree.main import app


client = TestClient(app)


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    for name in ("STATUSTREE_API_KEY", "STATUSTREE_BASE_PATH", "STATUSTREE_MAX_RECORDS", "STATUSTREE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_health():
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_ready_ok_without_configuration():
    r = client.get("/api/v1/ready")
    assert r.status_code == 200
    assert r.json()["ready"] is True


def test_ready_returns_503_with_reason_when_base_path_malformed(monkeypatch):
    monkeypatch.setenv("STATUSTREE_BASE_PATH", "vault//repo")

    r = client.get("/api/v1/ready")
    assert r.status_code == 503
    body = r.json()
    assert body["ready"] is False
    assert body["reason"].startswith("STATUSTREE_BASE_PATH invalid")


def test_auth_enforced_for_tree_when_key_set(monkeypatch):
    monkeypatch.setenv("STATUSTREE_API_KEY", "secret")

    r = client.post("/api/v1/tree", json={"records": [{"path": "a.md"}]})
    assert r.status_code == 401
    body = r.json()
    assert body["code"] == "unauthorized"
    assert body["message"] == "Invalid API key"

    r = client.post("/api/v1/tree", headers={"X-API-Key": "secret"}, json={"records": [{"path": "a.md"}]})
    assert r.status_code == 200


def test_health_open_when_key_set(monkeypatch):
    monkeypatch.setenv("STATUSTREE_API_KEY", "secret")

    assert client.get("/api/v1/health").status_code == 200


def test_tree_endpoint_serialises_directories_and_leaves():
    r = client.post(
        "/api/v1/tree",
        json={"records": [{"path": "readme.md", "size": 3}, {"path": "src/a.md"}]},
    )

    assert r.status_code == 200
    body = r.json()
    assert body["tree"] == [
        {
            "title": "src",
            "path": "src",
            "vaultPath": "src",
            "children": [
                {"title": "a.md", "path": "src/a.md", "vaultPath": "src/a.md", "data": {"path": "src/a.md"}},
            ],
        },
        {"title": "readme.md", "path": "readme.md", "vaultPath": "readme.md", "data": {"path": "readme.md", "size": 3}},
    ]
    assert body["stats"] == {
        "record_count": 2,
        "directory_count": 1,
        "root_counts": {"readme.md": 1, "src": 1},
    }


def test_tree_endpoint_collapses_chain_and_applies_base_path(monkeypatch):
    monkeypatch.setenv("STATUSTREE_BASE_PATH", "vault")

    r = client.post("/api/v1/tree", json={"records": [{"path": "x/y/z.md"}]})

    assert r.status_code == 200
    (node,) = r.json()["tree"]
    assert node["title"] == "x/y"
    assert node["path"] == "x/y"
    assert node["vaultPath"] == "vault/x/y"
    assert node["children"][0]["vaultPath"] == "vault/x/y/z.md"

    r = client.post("/api/v1/tree", params={"base_path": "other"}, json={"records": [{"path": "x/y/z.md"}]})
    assert r.json()["tree"][0]["vaultPath"] == "other/x/y"


def test_tree_endpoint_empty_records():
    r = client.post("/api/v1/tree", json={"records": []})

    assert r.status_code == 200
    assert r.json()["tree"] == []
    assert r.json()["stats"]["record_count"] == 0


def test_malformed_path_rejects_whole_request():
    r = client.post("/api/v1/tree", json={"records": [{"path": "ok.md"}, {"path": "bad//path.md"}]})

    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "malformed_path"
    assert body["details"] == {"path": "bad//path.md"}


def test_duplicate_path_returns_409():
    r = client.post("/api/v1/tree", json={"records": [{"path": "a/b.md"}, {"path": "a/b.md"}]})

    assert r.status_code == 409
    assert r.json()["code"] == "duplicate_path"


def test_too_many_records_returns_413(monkeypatch):
    monkeypatch.setenv("STATUSTREE_MAX_RECORDS", "2")

    r = client.post("/api/v1/tree", json={"records": [{"path": "a.md"}, {"path": "b.md"}, {"path": "c.md"}]})

    assert r.status_code == 413
    assert r.json()["code"] == "too_many_records"


def test_missing_path_is_a_validation_error():
    r = client.post("/api/v1/tree", json={"records": [{"name": "a.md"}]})
    assert r.status_code == 422


def test_status_tree_builds_staged_and_changed_separately():
    payload = {
        "staged": [
            {"path": "notes/daily/today.md", "index": "M", "working_dir": " "},
            {"path": "readme.md", "index": "A", "working_dir": " "},
        ],
        "changed": [
            {"path": "notes/ideas.md", "index": " ", "working_dir": "M"},
        ],
    }

    r = client.post("/api/v1/status/tree", json=payload)

    assert r.status_code == 200
    body = r.json()
    assert [node["title"] for node in body["staged"]["tree"]] == ["notes/daily", "readme.md"]
    assert body["staged"]["tree"][0]["children"][0]["data"] == {
        "path": "notes/daily/today.md",
        "index": "M",
        "working_dir": " ",
    }
    (notes,) = body["changed"]["tree"]
    assert notes["title"] == "notes"
    assert notes["children"][0]["data"]["working_dir"] == "M"


def test_status_tree_same_path_in_staged_and_changed_is_allowed():
    payload = {
        "staged": [{"path": "a.md", "index": "M"}],
        "changed": [{"path": "a.md", "working_dir": "M"}],
    }

    r = client.post("/api/v1/status/tree", json=payload)

    assert r.status_code == 200


def test_status_tree_maps_vault_paths_back_to_repository():
    payload = {
        "staged": [
            {"path": "vault/repo/notes/new.md", "from": "vault/repo/notes/old.md", "index": "R"},
        ],
    }

    r = client.post(
        "/api/v1/status/tree",
        params={"base_path": "vault/repo", "relative_to_vault": "true"},
        json=payload,
    )

    assert r.status_code == 200
    (notes,) = r.json()["staged"]["tree"]
    assert notes["path"] == "notes"
    assert notes["vaultPath"] == "vault/repo/notes"
    leaf = notes["children"][0]
    assert leaf["vaultPath"] == "vault/repo/notes/new.md"
    assert leaf["data"]["path"] == "notes/new.md"
    assert leaf["data"]["from"] == "notes/old.md"
    assert r.json()["changed"]["tree"] == []


def test_status_tree_rejects_path_outside_base_path():
    r = client.post(
        "/api/v1/status/tree",
        params={"base_path": "vault/repo", "relative_to_vault": "true"},
        json={"staged": [{"path": "elsewhere/a.md"}]},
    )

    assert r.status_code == 400
    assert r.json()["code"] == "malformed_path"


def test_request_id_is_echoed():
    r = client.get("/api/v1/health", headers={"X-Request-Id": "req-1"})
    assert r.headers["X-Request-Id"] == "req-1"

    r = client.get("/api/v1/health")
    assert r.headers["X-Request-Id"]


def test_unknown_log_level_falls_back_and_reports_not_ready(monkeypatch):
    from statustree.log_utils import setup_logging

    monkeypatch.setenv("STATUSTREE_LOG_LEVEL", "verbose")
    setup_logging()

    r = client.get("/api/v1/ready")
    assert r.status_code == 503
    assert "STATUSTREE_LOG_LEVEL invalid" in r.json()["reason"]
