import pytest

from conifer import convert, models as M
from conifer.exceptions import VectorDBError
from conifer.wire import control as W
from conifer.wire import inference as WI
from conifer.wire import vector_service as pb


def test_struct_round_trip_keeps_nested_values():
    data = {"genre": "drama", "tags": ["a", "b"], "nested": {"ok": True}}
    assert convert.dict_from_struct(convert.struct_from_dict(data)) == data
    assert convert.struct_from_dict(None) is None


def test_vec_to_grpc_and_back():
    v = M.Vector(
        id="v1",
        values=[1.0, 2.0],
        sparse_values=M.SparseValues(indices=[1, 5], values=[0.5, 0.25]),
        metadata={"k": "v"},
    )
    out = convert.to_vector(convert.vec_to_grpc(v))
    assert out == v


def test_to_vector_leaves_absent_parts_empty():
    out = convert.to_vector(pb.Vector(id="bare"))
    assert out.values is None
    assert out.sparse_values is None
    assert out.metadata is None


def test_usage_and_pagination():
    resp = pb.ListResponse()
    assert convert.usage_of(resp) is None
    assert convert.to_pagination_token(None) is None
    resp.usage.read_units = 4
    resp.pagination.next = "tok"
    assert convert.usage_of(resp) == M.Usage(read_units=4)
    assert convert.to_pagination_token(resp.pagination) == "tok"
    assert convert.to_pagination_token(pb.Pagination(next="")) is None


def _pod_index(**spec) -> W.IndexModel:
    return W.IndexModel(
        name="p",
        dimension=8,
        metric="euclidean",
        host="p-1.svc.io",
        spec=W.IndexSpecModel(pod=W.PodSpecModel(environment="us-east1-gcp", **spec)),
        status=W.IndexStatusModel(ready=True, state="Ready"),
    )


def test_to_index_pod_defaults():
    idx = convert.to_index(_pod_index())
    assert idx.metric == M.IndexMetric.EUCLIDEAN
    assert idx.deletion_protection == M.DeletionProtection.DISABLED
    assert idx.spec.pod.pod_count == 1
    assert idx.spec.pod.replicas == 1
    assert idx.spec.pod.shard_count == 1
    assert idx.status.state == M.IndexStatusState.READY


def test_to_index_keeps_unknown_metric_and_state():
    wire = _pod_index().model_copy(update={
        "metric": "hamming",
        "status": W.IndexStatusModel(ready=False, state="Migrating"),
    })
    idx = convert.to_index(wire)
    assert idx.metric == "hamming"
    assert idx.status.state == "Migrating"


def test_to_index_serverless_with_schema_and_dedicated_capacity():
    wire = W.IndexModel.model_validate({
        "name": "s",
        "dimension": 4,
        "metric": "cosine",
        "host": "s-1.svc.io",
        "deletion_protection": "enabled",
        "spec": {"serverless": {
            "cloud": "aws",
            "region": "us-east-1",
            "schema": {"fields": {"genre": {"filterable": True}}},
            "read_capacity": {
                "mode": "Dedicated",
                "dedicated": {"node_type": "b1", "scaling": "Manual", "manual": {"replicas": 2, "shards": 3}},
                "status": {"state": "Ready", "current_replicas": 2, "current_shards": 3},
            },
        }},
        "status": {"ready": True, "state": "SomethingNew"},
    })
    idx = convert.to_index(wire)
    s = idx.spec.serverless
    assert s.cloud == M.Cloud.AWS
    assert s.schema_.fields["genre"].filterable is True
    assert s.read_capacity.dedicated == M.ReadCapacityDedicated(node_type="b1", replicas=2, shards=3)
    assert s.read_capacity.status.current_shards == 3
    assert idx.deletion_protection == M.DeletionProtection.ENABLED
    # unknown states pass through as strings
    assert idx.status.state == "SomethingNew"


def test_read_capacity_to_wire():
    assert convert.read_capacity_to_wire(None).mode == "OnDemand"
    rc = convert.read_capacity_to_wire(M.ReadCapacity(
        mode="Dedicated", dedicated=M.ReadCapacityDedicated(node_type="t1", replicas=2, shards=1),
    ))
    assert rc.mode == "Dedicated"
    assert rc.dedicated.node_type == "t1"
    assert rc.dedicated.manual == W.ManualScaling(replicas=2, shards=1)


def test_namespace_messages_to_models():
    schema = convert.schema_to_grpc(M.MetadataSchema(fields={"genre": M.MetadataSchemaField(filterable=True)}))
    desc = pb.NamespaceDescription(name="films", record_count=7, schema=schema)
    desc.indexed_fields.fields.append("genre")
    resp = pb.ListNamespacesResponse(namespaces=[desc, pb.NamespaceDescription(name="empty")], total_count=2)

    out = convert.to_list_namespaces_response(resp)
    assert out.total_count == 2
    assert out.next_pagination_token is None
    films, empty = out.namespaces
    assert films.record_count == 7
    assert films.schema_.fields["genre"].filterable
    assert films.indexed_fields == ["genre"]
    assert empty.schema_ is None
    assert empty.indexed_fields is None
    assert convert.schema_to_grpc(None) is None


def test_stats_keep_unknown_metric():
    res = pb.DescribeIndexStatsResponse(total_vector_count=1, metric="hamming")
    res.namespaces["a"].vector_count = 1
    stats = convert.to_describe_index_stats(res)
    assert stats.metric == "hamming"
    assert stats.dimension is None
    assert stats.vector_type is None
    assert convert.to_describe_index_stats(pb.DescribeIndexStatsResponse(metric="cosine")).metric == M.IndexMetric.COSINE


def test_merge_index_tags_overrides_existing():
    assert convert.merge_index_tags({"a": "1", "b": "2"}, {"b": "3", "c": "4"}) == {"a": "1", "b": "3", "c": "4"}
    assert convert.merge_index_tags(None, None) == {}


def test_to_collection_defaults_to_zero():
    c = convert.to_collection(W.CollectionModel(name="c", status="Ready", environment="env"))
    assert (c.size, c.dimension, c.vector_count) == (0, 0, 0)
    assert c.status == M.CollectionStatus.READY


def test_to_embed_response_dense_and_sparse():
    dense = convert.to_embed_response(WI.EmbeddingsList(
        model="m", vector_type="dense",
        data=[WI.EmbeddingModel(vector_type="dense", values=[0.1, 0.2])],
        usage=WI.EmbedUsage(total_tokens=3),
    ))
    assert dense.data[0].values == [0.1, 0.2]
    assert dense.usage.total_tokens == 3

    sparse = convert.to_embed_response(WI.EmbeddingsList(
        model="s", vector_type="sparse",
        data=[WI.EmbeddingModel(vector_type="sparse", sparse_indices=[7], sparse_values=[1.0])],
    ))
    assert sparse.data[0].vector_type == "sparse"
    assert sparse.data[0].sparse_indices == [7]
    assert sparse.data[0].values is None


def test_to_embed_response_rejects_unknown_vector_type():
    with pytest.raises(VectorDBError):
        convert.to_embed_response(WI.EmbeddingsList(
            model="m", data=[WI.EmbeddingModel(vector_type="hybrid")],
        ))


def test_search_request_to_wire_keeps_only_set_fields():
    req = M.SearchRecordsRequest(
        query=M.SearchRecordsQuery(top_k=3, inputs={"text": "hi"}),
        fields=["chunk_text"],
        rerank=M.SearchRecordsRerank(model="bge-reranker-v2-m3", rank_fields=["chunk_text"]),
    )
    body = convert.search_request_to_wire(req).model_dump(exclude_none=True)
    assert body == {
        "query": {"top_k": 3, "inputs": {"text": "hi"}},
        "fields": ["chunk_text"],
        "rerank": {"model": "bge-reranker-v2-m3", "rank_fields": ["chunk_text"]},
    }
