from fastapi.testclient import TestClient

from conifer_local.config import Settings
from conifer_local.main import create_app

SERVERLESS = {"serverless": {"cloud": "aws", "region": "us-east-1"}}


def _client(**settings) -> TestClient:
    return TestClient(create_app(Settings(_env_file=None, grpc_enabled=False, **settings)))


def test_create_describe_list_serverless_index():
    c = _client()
    r = c.post("/indexes", json={"name": "films", "dimension": 3, "spec": SERVERLESS})
    assert r.status_code == 201
    idx = r.json()
    assert idx["metric"] == "cosine"
    assert idx["vector_type"] == "dense"
    assert idx["deletion_protection"] == "disabled"
    assert idx["status"] == {"ready": True, "state": "Ready"}
    assert idx["spec"]["serverless"]["read_capacity"]["mode"] == "OnDemand"
    assert idx["host"].startswith("films-")

    assert c.get("/indexes/films").json()["host"] == idx["host"]
    assert [i["name"] for i in c.get("/indexes").json()["indexes"]] == ["films"]


def test_duplicate_and_invalid_names():
    c = _client()
    c.post("/indexes", json={"name": "films", "dimension": 3, "spec": SERVERLESS})
    dup = c.post("/indexes", json={"name": "films", "dimension": 3, "spec": SERVERLESS})
    assert dup.status_code == 409
    assert dup.json()["error"]["code"] == "ALREADY_EXISTS"
    assert dup.json()["status"] == 409

    bad = c.post("/indexes", json={"name": "Films_1", "dimension": 3, "spec": SERVERLESS})
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "INVALID_ARGUMENT"


def test_sparse_index_rules():
    c = _client()
    ok = c.post("/indexes", json={"name": "kw", "vector_type": "sparse", "spec": SERVERLESS})
    assert ok.status_code == 201
    assert ok.json()["metric"] == "dotproduct"
    assert "dimension" not in ok.json()

    bad = c.post("/indexes", json={"name": "kw2", "vector_type": "sparse", "dimension": 4, "spec": SERVERLESS})
    assert bad.status_code == 400


def test_missing_index_uses_error_envelope():
    r = _client().get("/indexes/nope")
    assert r.status_code == 404
    assert r.json() == {"error": {"code": "NOT_FOUND", "message": "Index nope not found"}, "status": 404}


def test_request_validation_uses_error_envelope():
    r = _client().post("/indexes", json={"name": "no-spec"})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "INVALID_ARGUMENT"
    assert "spec" in r.json()["error"]["message"]


def test_configure_tags_and_deletion_protection():
    c = _client()
    c.post("/indexes", json={"name": "films", "dimension": 3, "spec": SERVERLESS,
                             "tags": {"env": "dev", "team": "search"}})
    r = c.patch("/indexes/films", json={"tags": {"env": "prod", "team": ""}, "deletion_protection": "enabled"})
    assert r.status_code == 200
    assert r.json()["tags"] == {"env": "prod"}
    assert r.json()["deletion_protection"] == "enabled"

    blocked = c.delete("/indexes/films")
    assert blocked.status_code == 403
    assert blocked.json()["error"]["code"] == "FORBIDDEN"

    c.patch("/indexes/films", json={"deletion_protection": "disabled"})
    assert c.delete("/indexes/films").status_code == 202
    assert c.get("/indexes/films").status_code == 404


def test_pod_index_replicas():
    c = _client()
    r = c.post("/indexes", json={
        "name": "pods", "dimension": 8, "metric": "euclidean",
        "spec": {"pod": {"environment": "us-east1-gcp", "pod_type": "p1.x1", "replicas": 2, "shards": 1}},
    })
    assert r.status_code == 201
    assert r.json()["spec"]["pod"]["pods"] == 2

    r = c.patch("/indexes/pods", json={"spec": {"pod": {"replicas": 3}}})
    assert r.json()["spec"]["pod"]["replicas"] == 3
    assert r.json()["spec"]["pod"]["pods"] == 3

    wrong = c.patch("/indexes/pods", json={"spec": {"serverless": {"read_capacity": {"mode": "OnDemand"}}}})
    assert wrong.status_code == 400


def test_dedicated_read_capacity():
    c = _client()
    c.post("/indexes", json={"name": "films", "dimension": 3, "spec": SERVERLESS})
    r = c.patch("/indexes/films", json={"spec": {"serverless": {"read_capacity": {
        "mode": "Dedicated",
        "dedicated": {"node_type": "b1", "scaling": "Manual", "manual": {"replicas": 2, "shards": 1}},
    }}}})
    rc = r.json()["spec"]["serverless"]["read_capacity"]
    assert rc["mode"] == "Dedicated"
    assert rc["status"] == {"state": "Ready", "current_replicas": 2, "current_shards": 1}


def test_create_for_model():
    c = _client()
    r = c.post("/indexes/create-for-model", json={
        "name": "docs", "cloud": "aws", "region": "us-east-1",
        "embed": {"model": "llama-text-embed-v2", "field_map": {"text": "chunk_text"}, "dimension": 384},
    })
    assert r.status_code == 201
    idx = r.json()
    assert idx["dimension"] == 384
    assert idx["embed"]["model"] == "llama-text-embed-v2"
    assert idx["embed"]["field_map"] == {"text": "chunk_text"}

    unknown = c.post("/indexes/create-for-model", json={
        "name": "docs2", "cloud": "aws", "region": "us-east-1",
        "embed": {"model": "nope", "field_map": {"text": "t"}},
    })
    assert unknown.status_code == 404


def test_api_key_is_enforced_when_configured():
    c = _client(api_key="secret")
    denied = c.get("/indexes")
    assert denied.status_code == 401
    assert denied.json()["error"]["code"] == "UNAUTHENTICATED"
    assert c.get("/indexes", headers={"Api-Key": "secret"}).status_code == 200


def test_rejected_configure_leaves_index_unchanged():
    c = _client()
    c.post("/indexes", json={"name": "films", "dimension": 3, "spec": SERVERLESS, "tags": {"env": "dev"}})

    r = c.patch("/indexes/films", json={"tags": {"env": "prod"}, "embed": {"model": "multilingual-e5-large"}})
    assert r.status_code == 400
    r = c.patch("/indexes/films", json={"tags": {"team": "ml"}, "deletion_protection": "sometimes"})
    assert r.status_code == 400

    idx = c.get("/indexes/films").json()
    assert idx["tags"] == {"env": "dev"}
    assert idx["deletion_protection"] == "disabled"
    assert "embed" not in idx
