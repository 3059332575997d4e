# conifer/convert.py
"""Translation between conifer's domain models and the wire formats."""
from __future__ import annotations
from typing import Any, Mapping

from google.protobuf import json_format

from . import models as M
from .exceptions import VectorDBError
from .wire import admin as WA
from .wire import control as W
from .wire import data as WD
from .wire import inference as WI
from .wire import vector_service as pb


# ------------ protobuf Struct ------------
def struct_from_dict(data: Mapping[str, Any] | None):
    if data is None:
        return None
    s = pb.Struct()
    s.update(dict(data))
    return s


def dict_from_struct(s) -> dict[str, Any] | None:
    if s is None:
        return None
    return json_format.MessageToDict(s)


# ------------ vectors: domain -> RPC ------------
def sparse_val_to_grpc(sv: M.SparseValues | None):
    if sv is None:
        return None
    return pb.SparseValues(indices=sv.indices, values=sv.values)


def vec_to_grpc(v: M.Vector | None):
    if v is None:
        return None
    out = pb.Vector(id=v.id, values=v.values or [])
    if v.sparse_values is not None:
        out.sparse_values.CopyFrom(sparse_val_to_grpc(v.sparse_values))
    if v.metadata is not None:
        out.metadata.CopyFrom(struct_from_dict(v.metadata))
    return out


# ------------ vectors: RPC -> domain ------------
def to_sparse_values(sv) -> M.SparseValues | None:
    if sv is None:
        return None
    return M.SparseValues(indices=list(sv.indices), values=list(sv.values))


def to_vector(v) -> M.Vector | None:
    if v is None:
        return None
    return M.Vector(
        id=v.id,
        values=list(v.values) or None,
        sparse_values=to_sparse_values(v.sparse_values) if v.HasField("sparse_values") else None,
        metadata=dict_from_struct(v.metadata) if v.HasField("metadata") else None,
    )


def to_scored_vector(sv) -> M.ScoredVector | None:
    if sv is None:
        return None
    vec = M.Vector(
        id=sv.id,
        values=list(sv.values) or None,
        sparse_values=to_sparse_values(sv.sparse_values) if sv.HasField("sparse_values") else None,
        metadata=dict_from_struct(sv.metadata) if sv.HasField("metadata") else None,
    )
    return M.ScoredVector(vector=vec, score=sv.score)


def to_usage(u) -> M.Usage | None:
    if u is None:
        return None
    return M.Usage(read_units=u.read_units)


def usage_of(resp) -> M.Usage | None:
    return to_usage(resp.usage) if resp.HasField("usage") else None


def to_pagination_token(p) -> str | None:
    if p is None or not p.next:
        return None
    return p.next


def to_describe_index_stats(res) -> M.DescribeIndexStatsResponse:
    return M.DescribeIndexStatsResponse(
        dimension=res.dimension if res.HasField("dimension") else None,
        index_fullness=res.index_fullness,
        total_vector_count=res.total_vector_count,
        namespaces={
            name: M.NamespaceSummary(vector_count=summary.vector_count)
            for name, summary in res.namespaces.items()
        },
        metric=_enum_or_raw(M.IndexMetric, res.metric) if res.metric else None,
        vector_type=res.vector_type or None,
    )


# ------------ index ------------
def to_metadata_schema(s: W.MetadataSchemaModel | None) -> M.MetadataSchema | None:
    if s is None:
        return None
    return M.MetadataSchema(
        fields={k: M.MetadataSchemaField(filterable=f.filterable) for k, f in s.fields.items()}
    )


def schema_to_wire(s: M.MetadataSchema | None) -> W.MetadataSchemaModel | None:
    if s is None:
        return None
    return W.MetadataSchemaModel(
        fields={k: W.SchemaField(filterable=f.filterable) for k, f in s.fields.items()}
    )


def schema_to_grpc(s: M.MetadataSchema | None):
    if s is None:
        return None
    msg = pb.MetadataSchema()
    for name, field in s.fields.items():
        msg.fields[name].filterable = field.filterable
    return msg


def to_read_capacity(rc: W.ReadCapacityModel | None) -> M.ReadCapacity | None:
    if rc is None:
        return None
    out = M.ReadCapacity(mode="Dedicated" if rc.mode == "Dedicated" else "OnDemand")
    if rc.mode == "Dedicated" and rc.dedicated is not None:
        manual = rc.dedicated.manual or W.ManualScaling()
        out.dedicated = M.ReadCapacityDedicated(
            node_type=rc.dedicated.node_type, replicas=manual.replicas, shards=manual.shards
        )
    if rc.status is not None:
        out.status = M.ReadCapacityStatus(**rc.status.model_dump())
    return out


def read_capacity_to_wire(rc: M.ReadCapacity | None) -> W.ReadCapacityModel:
    """Absent read capacity means on-demand."""
    if rc is None or rc.dedicated is None:
        return W.ReadCapacityModel(mode="OnDemand")
    d = rc.dedicated
    return W.ReadCapacityModel(
        mode="Dedicated",
        dedicated=W.DedicatedCapacity(
            node_type=d.node_type,
            scaling="Manual",
            manual=W.ManualScaling(replicas=d.replicas, shards=d.shards),
        ),
    )


def _to_index_spec(spec: W.IndexSpecModel) -> M.IndexSpec:
    out = M.IndexSpec()
    if spec.pod is not None:
        p = spec.pod
        out.pod = M.PodSpec(
            environment=p.environment,
            pod_type=p.pod_type,
            pod_count=p.pods or 1,
            replicas=p.replicas or 1,
            shard_count=p.shards or 1,
            source_collection=p.source_collection,
            metadata_config=(
                M.PodSpecMetadataConfig(indexed=p.metadata_config.indexed)
                if p.metadata_config is not None else None
            ),
        )
    if spec.serverless is not None:
        s = spec.serverless
        out.serverless = M.ServerlessSpec(
            cloud=_enum_or_raw(M.Cloud, s.cloud),
            region=s.region,
            source_collection=s.source_collection,
            read_capacity=to_read_capacity(s.read_capacity),
            schema=to_metadata_schema(s.schema_),
        )
    if spec.byoc is not None:
        out.byoc = M.BYOCSpec(environment=spec.byoc.environment)
    return out


def to_index(idx: W.IndexModel | None) -> M.Index | None:
    if idx is None:
        return None
    embed = None
    if idx.embed is not None:
        e = idx.embed
        embed = M.IndexEmbed(
            model=e.model,
            dimension=e.dimension,
            metric=_enum_or_raw(M.IndexMetric, e.metric) if e.metric else None,
            vector_type=e.vector_type,
            field_map=e.field_map,
            read_parameters=e.read_parameters,
            write_parameters=e.write_parameters,
        )
    return M.Index(
        name=idx.name,
        host=idx.host,
        metric=_enum_or_raw(M.IndexMetric, idx.metric),
        vector_type=idx.vector_type,
        deletion_protection=M.DeletionProtection(idx.deletion_protection or "disabled"),
        dimension=idx.dimension,
        private_host=idx.private_host,
        spec=_to_index_spec(idx.spec),
        status=M.IndexStatus(
            ready=idx.status.ready,
            state=_enum_or_raw(M.IndexStatusState, idx.status.state),
        ),
        tags=idx.tags,
        embed=embed,
    )


def merge_index_tags(existing: Mapping[str, str] | None, new: Mapping[str, str] | None) -> dict[str, str]:
    merged = dict(existing or {})
    merged.update(new or {})
    return merged


def to_collection(c: W.CollectionModel | None) -> M.Collection | None:
    if c is None:
        return None
    return M.Collection(
        name=c.name,
        size=c.size or 0,
        status=_enum_or_raw(M.CollectionStatus, c.status),
        dimension=c.dimension or 0,
        vector_count=c.vector_count or 0,
        environment=c.environment,
    )


# ------------ backups / restore jobs ------------
def _to_pagination(p: W.PaginationResponse | None) -> M.Pagination | None:
    return M.Pagination(next=p.next) if p is not None else None


def to_backup(b: W.BackupModel | None) -> M.Backup | None:
    if b is None:
        return None
    return M.Backup(
        backup_id=b.backup_id,
        source_index_name=b.source_index_name,
        source_index_id=b.source_index_id,
        status=b.status,
        cloud=b.cloud,
        region=b.region,
        name=b.name,
        description=b.description,
        dimension=b.dimension,
        metric=_enum_or_raw(M.IndexMetric, b.metric) if b.metric else None,
        record_count=b.record_count,
        namespace_count=b.namespace_count,
        size_bytes=b.size_bytes,
        tags=b.tags,
        created_at=b.created_at,
        schema=to_metadata_schema(b.schema_),
    )


def to_backup_list(bl: W.BackupList) -> M.BackupList:
    return M.BackupList(
        data=[to_backup(b) for b in bl.data or []],
        pagination=_to_pagination(bl.pagination),
    )


def to_restore_job(r: W.RestoreJobModel | None) -> M.RestoreJob | None:
    if r is None:
        return None
    return M.RestoreJob(**r.model_dump())


def to_restore_job_list(rl: W.RestoreJobList) -> M.RestoreJobList:
    return M.RestoreJobList(
        data=[to_restore_job(r) for r in rl.data or []],
        pagination=_to_pagination(rl.pagination),
    )


# ------------ inference ------------
def to_embed_response(el: WI.EmbeddingsList) -> M.EmbedResponse:
    data: list[M.Embedding] = []
    for item in el.data:
        vector_type = item.vector_type or el.vector_type
        if vector_type == "dense":
            data.append(M.Embedding(vector_type="dense", values=item.values or []))
        elif vector_type == "sparse":
            data.append(M.Embedding(
                vector_type="sparse",
                sparse_values=item.sparse_values or [],
                sparse_indices=item.sparse_indices or [],
                sparse_tokens=item.sparse_tokens,
            ))
        else:
            raise VectorDBError(f"unsupported embedding vector_type {vector_type!r}")
    return M.EmbedResponse(
        model=el.model,
        vector_type=el.vector_type,
        data=data,
        usage=M.EmbedUsage(total_tokens=el.usage.total_tokens),
    )


def to_rerank_response(rr: WI.RerankResult) -> M.RerankResponse:
    return M.RerankResponse(
        model=rr.model,
        data=[M.RankedDocument(index=d.index, score=d.score, document=d.document) for d in rr.data],
        usage=M.RerankUsage(rerank_units=rr.usage.rerank_units),
    )


def to_model_info(mi: WI.ModelInfo) -> M.ModelInfo:
    return M.ModelInfo.model_validate(mi.model_dump())


# ------------ records / imports / namespaces ------------
def to_import(i: WD.ImportModel | None) -> M.Import | None:
    if i is None:
        return None
    return M.Import(
        id=i.id or "",
        uri=i.uri or "",
        status=_enum_or_raw(M.ImportStatus, i.status or "Pending"),
        created_at=i.created_at,
        finished_at=i.finished_at,
        percent_complete=i.percent_complete,
        records_imported=i.records_imported,
        error=i.error,
    )


def to_list_imports_response(r: WD.ListImportsResponse) -> M.ListImportsResponse:
    return M.ListImportsResponse(
        imports=[to_import(i) for i in r.data or []],
        next_pagination_token=r.pagination.next if r.pagination else None,
    )


def to_namespace_description(n) -> M.NamespaceDescription:
    return M.NamespaceDescription(
        name=n.name,
        record_count=n.record_count,
        schema=to_metadata_schema(n.schema) if n.HasField("schema") else None,
        indexed_fields=list(n.indexed_fields.fields) if n.HasField("indexed_fields") else None,
    )


def to_list_namespaces_response(r) -> M.ListNamespacesResponse:
    return M.ListNamespacesResponse(
        namespaces=[to_namespace_description(n) for n in r.namespaces],
        next_pagination_token=to_pagination_token(r.pagination) if r.HasField("pagination") else None,
        total_count=r.total_count,
    )


def search_request_to_wire(req: M.SearchRecordsRequest) -> WD.SearchRecordsRequest:
    q = req.query
    vector = None
    if q.vector is not None:
        vector = WD.SearchVector(**q.vector.model_dump())
    rerank = WD.SearchRerank(**req.rerank.model_dump()) if req.rerank is not None else None
    return WD.SearchRecordsRequest(
        query=WD.SearchQuery(top_k=q.top_k, filter=q.filter, inputs=q.inputs, vector=vector, id=q.id),
        fields=req.fields,
        rerank=rerank,
    )


def to_search_records_response(r: WD.SearchRecordsResponse) -> M.SearchRecordsResponse:
    return M.SearchRecordsResponse(
        hits=[M.Hit(id=h.id, score=h.score, fields=h.fields) for h in r.result.hits],
        usage=M.SearchUsage(**r.usage.model_dump()),
    )


# ------------ admin ------------
def to_project(p: WA.ProjectModel) -> M.Project:
    return M.Project(**p.model_dump())


def to_organization(o: WA.OrganizationModel) -> M.Organization:
    return M.Organization(**o.model_dump())


def to_api_key(k: WA.APIKeyModel) -> M.ApiKey:
    return M.ApiKey(id=k.id, name=k.name, project_id=k.project_id, roles=list(k.roles))


def to_api_key_with_secret(k: WA.APIKeyWithSecret) -> M.ApiKeyWithSecret:
    return M.ApiKeyWithSecret(key=to_api_key(k.key), value=k.value)


def _enum_or_raw(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return value
