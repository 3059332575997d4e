from fastapi.testclient import TestClient

from conifer_local.config import Settings
from conifer_local.main import create_app

RECORDS = (
    '{"_id": "r1", "chunk_text": "apples are red", "category": "fruit"}\n'
    '{"_id": "r2", "chunk_text": "bananas are yellow", "category": "fruit"}\n'
    '\n'
    '{"id": "r3", "chunk_text": "carrots are orange", "category": "veg"}\n'
)


def _setup():
    c = TestClient(create_app(Settings(_env_file=None, grpc_enabled=False)))
    idx = c.post("/indexes/create-for-model", json={
        "name": "docs", "cloud": "aws", "region": "us-east-1",
        "embed": {"model": "multilingual-e5-large", "field_map": {"text": "chunk_text"}},
    }).json()
    base = f"https://{idx['host']}"
    r = c.post(f"{base}/records/namespaces/ns/upsert", content=RECORDS,
               headers={"Content-Type": "application/x-ndjson"})
    assert r.status_code == 201
    return c, base


def test_search_by_text_returns_selected_fields():
    c, base = _setup()
    r = c.post(f"{base}/records/namespaces/ns/search", json={
        "query": {"top_k": 2, "inputs": {"text": "apples are red"}},
        "fields": ["category"],
    })
    assert r.status_code == 200
    body = r.json()
    hits = body["result"]["hits"]
    assert len(hits) == 2
    assert hits[0]["_id"] == "r1"
    assert abs(hits[0]["_score"] - 1.0) < 1e-5
    assert hits[0]["fields"] == {"category": "fruit"}
    assert body["usage"]["embed_total_tokens"] == 3


def test_search_with_filter_and_rerank():
    c, base = _setup()
    filtered = c.post(f"{base}/records/namespaces/ns/search", json={
        "query": {"top_k": 3, "inputs": {"text": "vegetables"}, "filter": {"category": {"$eq": "veg"}}},
    }).json()
    assert [h["_id"] for h in filtered["result"]["hits"]] == ["r3"]

    reranked = c.post(f"{base}/records/namespaces/ns/search", json={
        "query": {"top_k": 3, "inputs": {"text": "bananas are yellow"}},
        "rerank": {"model": "bge-reranker-v2-m3", "rank_fields": ["chunk_text"], "top_n": 1},
    }).json()
    assert [h["_id"] for h in reranked["result"]["hits"]] == ["r2"]
    assert reranked["usage"]["rerank_units"] == 1


def test_bad_records_are_rejected():
    c, base = _setup()
    r = c.post(f"{base}/records/namespaces/ns/upsert", content='{"_id": "x"}\n')
    assert r.status_code == 400
    r = c.post(f"{base}/records/namespaces/ns/upsert", content="not json\n")
    assert r.status_code == 400
    assert "line 1" in r.json()["error"]["message"]
    r = c.post(f"{base}/records/namespaces/ns/upsert", content=b'{"_id": "a", "chunk_text": "\xff\xfe"}\n')
    assert r.status_code == 400
    assert r.json()["error"] == {"code": "INVALID_ARGUMENT", "message": "body is not valid UTF-8"}


def test_unknown_host_is_not_found():
    c, _ = _setup()
    r = c.post("https://nowhere.svc.local/records/namespaces/ns/search",
               json={"query": {"top_k": 1, "inputs": {"text": "x"}}})
    assert r.status_code == 404


def test_namespace_operations():
    c, base = _setup()
    listed = c.get(f"{base}/namespaces").json()
    assert listed["namespaces"] == [{"name": "ns", "record_count": 3}]
    assert listed["total_count"] == 1

    created = c.post(f"{base}/namespaces", json={
        "name": "empty", "schema": {"fields": {"category": {"filterable": True}}},
    })
    assert created.status_code == 201
    assert created.json()["schema"] == {"fields": {"category": {"filterable": True}}}
    assert c.post(f"{base}/namespaces", json={"name": "empty"}).status_code == 400

    assert c.get(f"{base}/namespaces/ns").json()["record_count"] == 3
    page = c.get(f"{base}/namespaces", params={"limit": 1}).json()
    assert [n["name"] for n in page["namespaces"]] == ["empty"]
    assert page["pagination"]["next"]

    assert c.delete(f"{base}/namespaces/empty").status_code == 202
    assert c.get(f"{base}/namespaces/empty").status_code == 404


def test_bulk_import_lifecycle():
    c, base = _setup()
    r = c.post(f"{base}/bulk/imports", json={"uri": "s3://bucket/path/", "error_mode": {"on_error": "abort"}})
    assert r.status_code == 200
    import_id = r.json()["id"]
    assert import_id == "101"

    desc = c.get(f"{base}/bulk/imports/{import_id}").json()
    assert desc["status"] == "InProgress"
    assert desc["uri"] == "s3://bucket/path/"
    assert [i["id"] for i in c.get(f"{base}/bulk/imports").json()["data"]] == ["101"]

    assert c.delete(f"{base}/bulk/imports/{import_id}").status_code == 200
    assert c.get(f"{base}/bulk/imports/{import_id}").json()["status"] == "Cancelled"
    assert c.delete(f"{base}/bulk/imports/{import_id}").status_code == 400

    assert c.post(f"{base}/bulk/imports", json={"uri": "ftp://nope"}).status_code == 400
    assert c.get(f"{base}/bulk/imports/999").status_code == 404
