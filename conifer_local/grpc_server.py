# conifer_local/grpc_server.py
"""``VectorService`` gRPC servers, one per emulated index."""
from __future__ import annotations

import functools
import logging
from concurrent import futures
from threading import RLock

import grpc

from conifer.convert import dict_from_struct, struct_from_dict
from conifer.wire import vector_service as pb

from conifer_local.config import Settings
from conifer_local.domain.errors import DomainError
from conifer_local.domain.models import IndexRecord, SparseVec, StoredVector
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.vectors import VectorService

log = logging.getLogger("conifer_local")


def _sparse_from_pb(msg, field: str) -> SparseVec | None:
    if not msg.HasField(field):
        return None
    sv = getattr(msg, field)
    return SparseVec(indices=list(sv.indices), values=list(sv.values))


def _filter_from_pb(msg, field: str = "filter"):
    return dict_from_struct(getattr(msg, field)) if msg.HasField(field) else None


def _vector_from_pb(v) -> StoredVector:
    return StoredVector(
        id=v.id,
        values=list(v.values) or None,
        sparse=_sparse_from_pb(v, "sparse_values"),
        metadata=dict_from_struct(v.metadata) if v.HasField("metadata") else None,
    )


def _fill_pb(out, v: StoredVector, include_values: bool = True, include_metadata: bool = True):
    if include_values:
        out.values.extend(v.values or [])
        if v.sparse is not None:
            out.sparse_values.indices.extend(v.sparse.indices)
            out.sparse_values.values.extend(v.sparse.values)
    if include_metadata and v.metadata is not None:
        out.metadata.CopyFrom(struct_from_dict(v.metadata))
    return out


def _namespace_pb(name: str, count: int, schema: dict | None = None):
    out = pb.NamespaceDescription(name=name, record_count=count)
    for field, props in ((schema or {}).get("fields") or {}).items():
        out.schema.fields[field].filterable = bool(props.get("filterable"))
    return out


def _rpc(fn):
    @functools.wraps(fn)
    def wrapper(self: "VectorServicer", request, context):
        self.authorize(context)
        try:
            return fn(self, self.index(), request, context)
        except DomainError as e:
            context.abort(e.grpc_code, e.detail)
    return wrapper


class VectorServicer(pb.VectorServiceServicer):
    def __init__(self, index_name: str, repo: InMemoryRepo, vectors: VectorService, settings: Settings):
        self.index_name = index_name
        self.repo = repo
        self.vectors = vectors
        self.settings = settings

    def index(self) -> IndexRecord:
        return self.repo.get_index(self.index_name)

    def authorize(self, context) -> None:
        if not self.settings.api_key:
            return
        md = dict(context.invocation_metadata())
        if md.get("api-key") != self.settings.api_key:
            context.abort(grpc.StatusCode.UNAUTHENTICATED, "Invalid API key")

    @_rpc
    def Upsert(self, idx, request, context):
        n = self.vectors.upsert(idx, request.namespace, [_vector_from_pb(v) for v in request.vectors])
        return pb.UpsertResponse(upserted_count=n)

    @_rpc
    def Fetch(self, idx, request, context):
        found = self.vectors.fetch(idx, request.namespace, list(request.ids))
        resp = pb.FetchResponse(namespace=request.namespace, usage=pb.Usage(read_units=1))
        for vid, v in found.items():
            _fill_pb(resp.vectors[vid], v).id = vid
        return resp

    @_rpc
    def List(self, idx, request, context):
        ids, next_token = self.vectors.list_ids(
            idx,
            request.namespace,
            request.prefix if request.HasField("prefix") else None,
            request.limit if request.HasField("limit") else None,
            request.pagination_token if request.HasField("pagination_token") else None,
        )
        resp = pb.ListResponse(
            vectors=[pb.ListItem(id=i) for i in ids],
            namespace=request.namespace,
            usage=pb.Usage(read_units=1),
        )
        if next_token:
            resp.pagination.next = next_token
        return resp

    @_rpc
    def Query(self, idx, request, context):
        matches = self.vectors.query(
            idx,
            request.namespace,
            request.top_k,
            vector=list(request.vector) or None,
            sparse=_sparse_from_pb(request, "sparse_vector"),
            vector_id=request.id or None,
            flt=_filter_from_pb(request),
        )
        resp = pb.QueryResponse(namespace=request.namespace, usage=pb.Usage(read_units=5))
        for v, score in matches:
            scored = resp.matches.add(id=v.id, score=score)
            _fill_pb(scored, v, request.include_values, request.include_metadata)
        return resp

    @_rpc
    def Update(self, idx, request, context):
        self.vectors.update(
            idx,
            request.namespace,
            request.id,
            list(request.values) or None,
            _sparse_from_pb(request, "sparse_values"),
            _filter_from_pb(request, "set_metadata"),
        )
        return pb.UpdateResponse()

    @_rpc
    def Delete(self, idx, request, context):
        self.vectors.delete(
            idx,
            request.namespace,
            ids=list(request.ids) or None,
            delete_all=request.delete_all,
            flt=_filter_from_pb(request),
        )
        return pb.DeleteResponse()

    @_rpc
    def DescribeIndexStats(self, idx, request, context):
        counts = self.vectors.stats(idx, _filter_from_pb(request))
        resp = pb.DescribeIndexStatsResponse(
            index_fullness=0.0,
            total_vector_count=sum(counts.values()),
            metric=idx.metric,
            vector_type=idx.vector_type,
        )
        if idx.dimension is not None:
            resp.dimension = idx.dimension
        for name, n in counts.items():
            resp.namespaces[name].vector_count = n
        return resp

    @_rpc
    def CreateNamespace(self, idx, request, context):
        schema = None
        if request.HasField("schema"):
            schema = {"fields": {k: {"filterable": f.filterable} for k, f in request.schema.fields.items()}}
        self.vectors.create_namespace(idx, request.name, schema)
        return _namespace_pb(request.name, 0, schema)

    @_rpc
    def DescribeNamespace(self, idx, request, context):
        count, schema = self.vectors.describe_namespace(idx, request.namespace)
        return _namespace_pb(request.namespace, count, schema)

    @_rpc
    def ListNamespaces(self, idx, request, context):
        page, next_token, total = self.vectors.list_namespaces(
            idx,
            request.prefix if request.HasField("prefix") else None,
            request.limit if request.HasField("limit") else None,
            request.pagination_token if request.HasField("pagination_token") else None,
        )
        resp = pb.ListNamespacesResponse(
            namespaces=[_namespace_pb(name, count, idx.namespace_schemas.get(name)) for name, count in page],
            total_count=total,
        )
        if next_token:
            resp.pagination.next = next_token
        return resp

    @_rpc
    def DeleteNamespace(self, idx, request, context):
        self.vectors.delete_namespace(idx, request.namespace)
        return pb.DeleteResponse()


class GrpcDataPlane:
    """Starts a local ``VectorService`` server for every index.

    Each index listens on its own port and is reported with an ``http://``
    host, which tells clients to use a plaintext channel.
    """

    def __init__(self, repo: InMemoryRepo, vectors: VectorService, settings: Settings):
        self.repo = repo
        self.vectors = vectors
        self.settings = settings
        self._servers: dict[str, grpc.Server] = {}
        self._lock = RLock()

    def attach(self, idx: IndexRecord) -> str:
        server = grpc.server(futures.ThreadPoolExecutor(max_workers=self.settings.grpc_workers))
        pb.add_VectorServiceServicer_to_server(
            VectorServicer(idx.name, self.repo, self.vectors, self.settings), server
        )
        port = server.add_insecure_port(f"{self.settings.grpc_host}:0")
        server.start()
        with self._lock:
            self._servers[idx.name] = server
        log.info("[grpc] index=%s listening on %s:%d", idx.name, self.settings.grpc_host, port)
        return f"http://{self.settings.grpc_host}:{port}"

    def detach(self, name: str) -> None:
        with self._lock:
            server = self._servers.pop(name, None)
        if server is not None:
            server.stop(grace=None)

    def stop_all(self) -> None:
        with self._lock:
            names = list(self._servers)
        for name in names:
            self.detach(name)


class HostOnlyDataPlane:
    """Assigns index hosts without serving RPCs; REST data-plane calls still work."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def attach(self, idx: IndexRecord) -> str:
        return f"{idx.name}-{idx.id[:8]}.svc.{self.settings.environment}.local"

    def detach(self, name: str) -> None:
        return None

    def stop_all(self) -> None:
        return None
