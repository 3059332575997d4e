import json

import httpx
import pytest

from conifer import Client, ClientConfig
from conifer import models as M
from conifer.config import API_VERSION
from conifer.exceptions import InvalidRequest


def _client(handler) -> Client:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return Client(ClientConfig.with_api_key("k", host="https://api.example.io"), http_client=http)


def _never(request):
    raise AssertionError(f"unexpected request {request.method} {request.url}")


def test_invalid_requests_are_never_sent():
    cli = _client(_never)
    with pytest.raises(InvalidRequest):
        cli.create_pod_index(M.CreatePodIndexRequest(name="p", dimension=0, environment="e", pod_type="p1.x1"))
    with pytest.raises(InvalidRequest):
        cli.create_serverless_index(M.CreateServerlessIndexRequest(
            name="s", cloud="aws", region="r", vector_type="sparse", metric="cosine",
        ))
    with pytest.raises(InvalidRequest):
        cli.create_collection(M.CreateCollectionRequest(name="c", source=""))
    with pytest.raises(InvalidRequest):
        cli.describe_backup("")
    with pytest.raises(InvalidRequest):
        cli.inference.rerank(M.RerankRequest(model="m", query="q", documents=[]))
    with pytest.raises(InvalidRequest, match="cannot be configured together"):
        cli.configure_index("i", M.ConfigureIndexParams(replicas=2, read_capacity=M.ReadCapacity()))


def test_pod_index_body_carries_computed_pod_count():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["version"] = request.headers.get("X-Pinecone-Api-Version")
        return httpx.Response(201, json={
            "name": "p", "dimension": 4, "metric": "cosine", "host": "p-1.svc.example.io",
            "spec": {"pod": {"environment": "e", "pod_type": "p1.x1", "pods": 6, "replicas": 2, "shards": 3}},
            "status": {"ready": True, "state": "Ready"},
        })

    idx = _client(handler).create_pod_index(M.CreatePodIndexRequest(
        name="p", dimension=4, environment="e", pod_type="p1.x1", replicas=2, shards=3,
    ))
    assert seen["path"] == "/indexes"
    assert seen["body"]["spec"]["pod"]["pods"] == 6
    assert seen["version"] == API_VERSION
    assert idx.spec.pod.pod_count == 6
    assert idx.deletion_protection == M.DeletionProtection.DISABLED


def test_configure_tags_merges_with_current_tags():
    patched = {}

    def handler(request: httpx.Request):
        model = {"name": "i", "dimension": 2, "metric": "cosine", "host": "i.example.io",
                 "spec": {"serverless": {"cloud": "aws", "region": "us-east-1"}},
                 "status": {"ready": True, "state": "Ready"}, "tags": {"env": "dev"}}
        if request.method == "PATCH":
            patched.update(json.loads(request.content))
            model["tags"] = patched["tags"]
        return httpx.Response(200, json=model)

    idx = _client(handler).configure_index("i", M.ConfigureIndexParams(tags={"team": "ml"}))
    assert patched == {"tags": {"env": "dev", "team": "ml"}}
    assert idx.tags == {"env": "dev", "team": "ml"}


def test_index_metadata_adds_api_version_and_auth():
    cli = _client(_never)
    conn = cli.index("idx-1.svc.example.io", additional_metadata={"X-Custom": "1"})
    assert conn.metadata == {"X-Custom": "1", "X-Pinecone-Api-Version": API_VERSION, "Api-Key": "k"}
    assert conn.namespace == "__default__"
    conn.close()

    conn = cli.index("https://idx-1.svc.example.io", namespace="ns",
                     additional_metadata={"x-pinecone-api-version": "2024-07"})
    assert conn.metadata["x-pinecone-api-version"] == "2024-07"
    assert "X-Pinecone-Api-Version" not in conn.metadata
    assert conn.host == "idx-1.svc.example.io"
    assert conn.with_namespace("other").namespace == "other"
    conn.close()


def test_index_requires_host():
    with pytest.raises(InvalidRequest, match="field Host is required"):
        _client(_never).index("")
