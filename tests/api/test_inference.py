from fastapi.testclient import TestClient

from conifer_local.config import Settings
from conifer_local.main import create_app


def _client() -> TestClient:
    return TestClient(create_app(Settings(_env_file=None, grpc_enabled=False)))


def test_dense_embed():
    r = _client().post("/embed", json={
        "model": "multilingual-e5-large",
        "inputs": [{"text": "hello world"}, {"text": "bye"}],
        "parameters": {"input_type": "passage"},
    })
    assert r.status_code == 200
    body = r.json()
    assert body["vector_type"] == "dense"
    assert [len(d["values"]) for d in body["data"]] == [1024, 1024]
    assert body["usage"]["total_tokens"] == 3


def test_sparse_embed_with_tokens():
    r = _client().post("/embed", json={
        "model": "pinecone-sparse-english-v0",
        "inputs": [{"text": "red apples"}],
        "parameters": {"input_type": "passage", "return_tokens": True},
    })
    item = r.json()["data"][0]
    assert item["vector_type"] == "sparse"
    assert item["sparse_tokens"] == ["apples", "red"]
    assert len(item["sparse_indices"]) == len(item["sparse_values"]) == 2


def test_embed_rejects_rerank_models_and_empty_input():
    c = _client()
    assert c.post("/embed", json={"model": "bge-reranker-v2-m3", "inputs": [{"text": "x"}]}).status_code == 400
    assert c.post("/embed", json={"model": "multilingual-e5-large", "inputs": []}).status_code == 400


def test_rerank_orders_by_score_and_honors_top_n():
    docs = [{"text": "bananas"}, {"text": "apple pie"}, {"text": "car engines"}]
    r = _client().post("/rerank", json={
        "model": "bge-reranker-v2-m3", "query": "apple pie", "documents": docs, "top_n": 2,
    })
    body = r.json()
    assert len(body["data"]) == 2
    # the identical document scores highest
    assert body["data"][0]["index"] == 1
    assert body["data"][0]["document"] == {"text": "apple pie"}
    assert body["data"][0]["score"] >= body["data"][1]["score"]
    assert body["usage"]["rerank_units"] == 1


def test_rerank_missing_rank_field():
    r = _client().post("/rerank", json={
        "model": "bge-reranker-v2-m3", "query": "q", "documents": [{"body": "x"}],
    })
    assert r.status_code == 400


def test_models_listing_and_describe():
    c = _client()
    names = {m["model"] for m in c.get("/models", params={"type": "rerank"}).json()["models"]}
    assert names == {"bge-reranker-v2-m3", "pinecone-rerank-v0"}
    sparse = c.get("/models", params={"vector_type": "sparse"}).json()["models"]
    assert [m["model"] for m in sparse] == ["pinecone-sparse-english-v0"]

    m = c.get("/models/llama-text-embed-v2").json()
    assert m["supported_dimensions"] == [384, 512, 768, 1024, 2048]
    assert c.get("/models/unknown").status_code == 404
