from conifer.wire import vector_service as pb


def test_service_methods_come_from_the_proto():
    assert pb.DESCRIPTOR.package == ""
    service = pb.DESCRIPTOR.services_by_name["VectorService"]
    assert service.full_name == "VectorService"
    assert set(pb.METHODS) == {
        "Upsert", "Delete", "Fetch", "List", "Query", "Update", "DescribeIndexStats",
        "ListNamespaces", "DescribeNamespace", "DeleteNamespace", "CreateNamespace",
    }
    query = service.methods_by_name["Query"]
    assert query.input_type.name == "QueryRequest"
    assert query.output_type.name == "QueryResponse"
    assert service.methods_by_name["CreateNamespace"].output_type.name == "NamespaceDescription"


def test_optional_fields_track_presence():
    msg = pb.ListRequest(namespace="ns")
    assert not msg.HasField("limit")
    msg.limit = 0
    assert msg.HasField("limit")

    parsed = pb.ListRequest.FromString(msg.SerializeToString())
    assert parsed.HasField("limit") and parsed.limit == 0
    assert not parsed.HasField("prefix")


def test_vector_with_metadata_and_sparse_values_survives_the_wire():
    v = pb.Vector(id="a", values=[0.5, 0.25])
    v.sparse_values.indices.extend([3, 9])
    v.sparse_values.values.extend([0.5, 1.0])
    v.metadata.update({"genre": "drama", "year": 2020})
    req = pb.UpsertRequest(vectors=[v], namespace="films")

    out = pb.UpsertRequest.FromString(req.SerializeToString())
    got = out.vectors[0]
    assert got.id == "a"
    assert list(got.values) == [0.5, 0.25]
    assert list(got.sparse_values.indices) == [3, 9]
    assert got.metadata["genre"] == "drama"
    assert got.metadata["year"] == 2020


def test_map_fields():
    resp = pb.DescribeIndexStatsResponse(total_vector_count=3)
    resp.namespaces["a"].vector_count = 2
    resp.namespaces["b"].vector_count = 1
    out = pb.DescribeIndexStatsResponse.FromString(resp.SerializeToString())
    assert {k: v.vector_count for k, v in out.namespaces.items()} == {"a": 2, "b": 1}
    assert not out.HasField("dimension")

    fetch = pb.FetchResponse(namespace="ns")
    fetch.vectors["x"].id = "x"
    assert pb.FetchResponse.FromString(fetch.SerializeToString()).vectors["x"].id == "x"


def test_namespace_description_tracks_optional_parts():
    desc = pb.NamespaceDescription(name="ns", record_count=4)
    assert not desc.HasField("schema")
    desc.schema.fields["genre"].filterable = True
    desc.indexed_fields.fields.append("genre")

    out = pb.NamespaceDescription.FromString(desc.SerializeToString())
    assert out.schema.fields["genre"].filterable
    assert list(out.indexed_fields.fields) == ["genre"]


def test_stats_carry_metric_and_vector_type():
    resp = pb.DescribeIndexStatsResponse(metric="dotproduct", vector_type="sparse")
    out = pb.DescribeIndexStatsResponse.FromString(resp.SerializeToString())
    assert (out.metric, out.vector_type) == ("dotproduct", "sparse")
