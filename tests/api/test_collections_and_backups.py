from fastapi.testclient import TestClient

from conifer_local.config import Settings
from conifer_local.main import create_app


def _client() -> TestClient:
    c = TestClient(create_app(Settings(_env_file=None, grpc_enabled=False)))
    c.post("/indexes", json={
        "name": "pods", "dimension": 4,
        "spec": {"pod": {"environment": "us-east1-gcp", "pod_type": "p1.x1"}},
    })
    c.post("/indexes", json={
        "name": "films", "dimension": 4, "tags": {"env": "dev"},
        "spec": {"serverless": {"cloud": "aws", "region": "us-east-1"}},
    })
    return c


def test_collection_lifecycle():
    c = _client()
    r = c.post("/collections", json={"name": "snap", "source": "pods"})
    assert r.status_code == 201
    coll = r.json()
    assert coll["status"] == "Ready"
    assert coll["dimension"] == 4
    assert coll["environment"] == "us-east1-gcp"

    assert [x["name"] for x in c.get("/collections").json()["collections"]] == ["snap"]
    assert c.post("/collections", json={"name": "snap", "source": "pods"}).status_code == 409
    assert c.post("/collections", json={"name": "other", "source": "films"}).status_code == 400

    restored = c.post("/indexes", json={
        "name": "pods2", "dimension": 4,
        "spec": {"pod": {"environment": "us-east1-gcp", "pod_type": "p1.x1", "source_collection": "snap"}},
    })
    assert restored.status_code == 201

    assert c.delete("/collections/snap").status_code == 202
    assert c.get("/collections/snap").status_code == 404


def test_backup_and_restore():
    c = _client()
    r = c.post("/indexes/films/backups", json={"name": "nightly", "description": "d"})
    assert r.status_code == 201
    backup = r.json()
    assert backup["source_index_name"] == "films"
    assert backup["status"] == "Ready"
    assert backup["record_count"] == 0
    assert backup["tags"] == {"env": "dev"}

    assert len(c.get("/backups").json()["data"]) == 1
    assert len(c.get("/indexes/films/backups").json()["data"]) == 1
    assert c.post("/indexes/pods/backups", json={}).status_code == 400

    r = c.post(f"/backups/{backup['backup_id']}/create-index", json={"name": "films-restored"})
    assert r.status_code == 202
    out = r.json()

    job = c.get(f"/restore-jobs/{out['restore_job_id']}").json()
    assert job["status"] == "Completed"
    assert job["target_index_name"] == "films-restored"
    assert job["target_index_id"] == out["index_id"]
    assert len(c.get("/restore-jobs").json()["data"]) == 1

    idx = c.get("/indexes/films-restored").json()
    assert idx["dimension"] == 4
    assert idx["tags"] == {"env": "dev"}

    assert c.delete(f"/backups/{backup['backup_id']}").status_code == 202
    assert c.get(f"/backups/{backup['backup_id']}").status_code == 404


def test_backup_listing_paginates():
    c = _client()
    for i in range(3):
        c.post("/indexes/films/backups", json={"name": f"b{i}"})
    first = c.get("/backups", params={"limit": 2}).json()
    assert len(first["data"]) == 2
    rest = c.get("/backups", params={"limit": 2, "paginationToken": first["pagination"]["next"]}).json()
    assert [b["name"] for b in rest["data"]] == ["b2"]
    assert "pagination" not in rest
