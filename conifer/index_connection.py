# conifer/index_connection.py
from __future__ import annotations
import copy
import json
import logging
from typing import Any, Iterable, Mapping, Sequence

import grpc
import httpx

from . import convert
from . import models as M
from .config import DEFAULT_NAMESPACE, ensure_host_has_https
from .exceptions import InvalidRequest
from .headers import build_user_agent_grpc, grpc_metadata
from .http import RestClient
from .wire import data as WD
from .wire import vector_service as pb

log = logging.getLogger("conifer")


def normalize_host(host: str) -> tuple[str, bool]:
    """Strip the scheme from ``host`` and report whether TLS should be used.

    Only an explicit ``http://`` scheme turns TLS off.
    """
    if host.startswith("http://"):
        return host[len("http://"):], False
    if host.startswith("https://"):
        return host[len("https://"):], True
    return host, True


def open_channel(
    target: str,
    secure: bool,
    *,
    source_tag: str | None = None,
    options: Sequence[tuple[str, Any]] = (),
    credentials: grpc.ChannelCredentials | None = None,
) -> grpc.Channel:
    opts = [
        ("grpc.primary_user_agent", build_user_agent_grpc(source_tag)),
        ("grpc.default_authority", target),
        *options,
    ]
    if secure:
        return grpc.secure_channel(target, credentials or grpc.ssl_channel_credentials(), options=opts)
    return grpc.insecure_channel(target, options=opts)


class IndexConnection:
    """Data-plane handle for one index host and namespace.

    Vector and namespace operations go over gRPC; records and bulk imports
    go over REST to the same host. ``with_namespace`` returns a
    handle that shares both transports, and ``close`` closes them for every
    handle that shares them.
    """

    def __init__(
        self,
        host: str,
        *,
        http: httpx.Client,
        rest_headers: Mapping[str, str],
        namespace: str = "",
        metadata: Mapping[str, str] | None = None,
        source_tag: str | None = None,
        grpc_options: Sequence[tuple[str, Any]] = (),
        channel_credentials: grpc.ChannelCredentials | None = None,
        timeout_s: float | None = None,
        retries: int = 0,
    ):
        if not host:
            raise InvalidRequest(
                "field Host is required to create an IndexConnection. "
                "Find your host from calling describe_index or via the console"
            )
        target, secure = normalize_host(host)
        self.host = target
        self._namespace = namespace or DEFAULT_NAMESPACE
        self._metadata = dict(metadata or {})
        self._grpc_md = grpc_metadata(self._metadata)
        self._timeout = timeout_s
        self._channel = open_channel(
            target, secure, source_tag=source_tag, options=grpc_options, credentials=channel_credentials
        )
        self._stub = pb.VectorServiceStub(self._channel)
        self._rest = RestClient(http, ensure_host_has_https(host), dict(rest_headers), retries)

    def _call(self, method: str, request):
        log.debug("rpc %s host=%s namespace=%s", method, self.host, self._namespace)
        return getattr(self._stub, method)(request, metadata=self._grpc_md, timeout=self._timeout)

    # ------------ lifecycle ------------
    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def metadata(self) -> dict[str, str]:
        return dict(self._metadata)

    def with_namespace(self, namespace: str) -> "IndexConnection":
        other = copy.copy(self)
        other._namespace = namespace or DEFAULT_NAMESPACE
        return other

    def close(self) -> None:
        self._channel.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ------------ vectors ------------
    def upsert_vectors(self, vectors: Iterable[M.Vector]) -> int:
        req = pb.UpsertRequest(vectors=[convert.vec_to_grpc(v) for v in vectors], namespace=self._namespace)
        return self._call("Upsert", req).upserted_count

    def fetch_vectors(self, ids: Sequence[str]) -> M.FetchVectorsResponse:
        res = self._call("Fetch", pb.FetchRequest(ids=list(ids), namespace=self._namespace))
        return M.FetchVectorsResponse(
            vectors={k: convert.to_vector(v) for k, v in res.vectors.items()},
            usage=convert.usage_of(res),
            namespace=self._namespace,
        )

    def list_vectors(self, req: M.ListVectorsRequest | None = None) -> M.ListVectorsResponse:
        req = req or M.ListVectorsRequest()
        msg = pb.ListRequest(namespace=self._namespace)
        if req.prefix is not None:
            msg.prefix = req.prefix
        if req.limit is not None:
            msg.limit = req.limit
        if req.pagination_token is not None:
            msg.pagination_token = req.pagination_token
        res = self._call("List", msg)
        return M.ListVectorsResponse(
            vector_ids=[item.id for item in res.vectors],
            usage=convert.usage_of(res),
            next_pagination_token=(
                convert.to_pagination_token(res.pagination) if res.HasField("pagination") else None
            ),
            namespace=self._namespace,
        )

    def query_by_vector_values(self, req: M.QueryByVectorValuesRequest) -> M.QueryVectorsResponse:
        msg = self._query_request(req.top_k, req.metadata_filter, req.include_values,
                                  req.include_metadata, req.sparse_values)
        msg.vector.extend(req.vector or [])
        return self._query(msg)

    def query_by_vector_id(self, req: M.QueryByVectorIdRequest) -> M.QueryVectorsResponse:
        msg = self._query_request(req.top_k, req.metadata_filter, req.include_values,
                                  req.include_metadata, req.sparse_values)
        msg.id = req.vector_id
        return self._query(msg)

    def _query_request(self, top_k, metadata_filter, include_values, include_metadata, sparse_values):
        msg = pb.QueryRequest(
            namespace=self._namespace,
            top_k=top_k,
            include_values=include_values,
            include_metadata=include_metadata,
        )
        if metadata_filter is not None:
            msg.filter.CopyFrom(convert.struct_from_dict(metadata_filter))
        if sparse_values is not None:
            msg.sparse_vector.CopyFrom(convert.sparse_val_to_grpc(sparse_values))
        return msg

    def _query(self, msg) -> M.QueryVectorsResponse:
        res = self._call("Query", msg)
        return M.QueryVectorsResponse(
            matches=[convert.to_scored_vector(m) for m in res.matches],
            usage=convert.usage_of(res),
            namespace=self._namespace,
        )

    def delete_vectors_by_id(self, ids: Sequence[str]) -> None:
        self._call("Delete", pb.DeleteRequest(ids=list(ids), namespace=self._namespace))

    def delete_vectors_by_filter(self, metadata_filter: M.Metadata) -> None:
        req = pb.DeleteRequest(namespace=self._namespace)
        req.filter.CopyFrom(convert.struct_from_dict(metadata_filter))
        self._call("Delete", req)

    def delete_all_vectors_in_namespace(self) -> None:
        self._call("Delete", pb.DeleteRequest(delete_all=True, namespace=self._namespace))

    def update_vector(self, req: M.UpdateVectorRequest) -> None:
        if not req.id or (req.values is None and req.sparse_values is None and req.metadata is None):
            raise InvalidRequest(
                "a vector ID plus at least one of Values, SparseValues, or Metadata "
                "must be provided to update a vector"
            )
        msg = pb.UpdateRequest(id=req.id, values=req.values or [], namespace=self._namespace)
        if req.sparse_values is not None:
            msg.sparse_values.CopyFrom(convert.sparse_val_to_grpc(req.sparse_values))
        if req.metadata is not None:
            msg.set_metadata.CopyFrom(convert.struct_from_dict(req.metadata))
        self._call("Update", msg)

    def describe_index_stats(self) -> M.DescribeIndexStatsResponse:
        return self.describe_index_stats_filtered(None)

    def describe_index_stats_filtered(self, metadata_filter: M.Metadata | None) -> M.DescribeIndexStatsResponse:
        req = pb.DescribeIndexStatsRequest()
        if metadata_filter is not None:
            req.filter.CopyFrom(convert.struct_from_dict(metadata_filter))
        return convert.to_describe_index_stats(self._call("DescribeIndexStats", req))

    # ------------ records ------------
    def upsert_records(self, records: Iterable[Mapping[str, Any]]) -> None:
        lines = []
        for rec in records:
            if "id" not in rec and "_id" not in rec:
                raise InvalidRequest("every record must have an 'id' or '_id' field")
            lines.append(json.dumps(dict(rec)))
        if not lines:
            raise InvalidRequest("at least one record must be provided")
        self._rest.request(
            "POST",
            f"/records/namespaces/{self._namespace}/upsert",
            content=("\n".join(lines) + "\n").encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
            expect=(201,),
            error_prefix="failed to upsert records",
        )

    def search_records(self, req: M.SearchRecordsRequest) -> M.SearchRecordsResponse:
        body = convert.search_request_to_wire(req).model_dump(exclude_none=True)
        r = self._rest.request("POST", f"/records/namespaces/{self._namespace}/search", json=body,
                               error_prefix="failed to search records")
        return convert.to_search_records_response(WD.SearchRecordsResponse.model_validate(r.json()))

    # ------------ bulk imports ------------
    def start_import(
        self,
        uri: str,
        integration_id: str | None = None,
        error_mode: str | None = None,
    ) -> M.StartImportResponse:
        if not uri:
            raise InvalidRequest("must specify a uri to start an import")
        body = WD.StartImportRequest(
            uri=uri,
            integration_id=integration_id,
            error_mode=WD.ImportErrorMode(on_error=error_mode) if error_mode else None,
        ).model_dump(exclude_none=True)
        r = self._rest.request("POST", "/bulk/imports", json=body, error_prefix="failed to start import")
        return M.StartImportResponse(id=WD.StartImportResponse.model_validate(r.json()).id or "")

    def describe_import(self, import_id: str) -> M.Import:
        r = self._rest.request("GET", f"/bulk/imports/{import_id}", error_prefix="failed to describe import")
        return convert.to_import(WD.ImportModel.model_validate(r.json()))

    def list_imports(self, limit: int | None = None, pagination_token: str | None = None) -> M.ListImportsResponse:
        r = self._rest.request("GET", "/bulk/imports",
                               params={"limit": limit, "paginationToken": pagination_token},
                               error_prefix="failed to list imports")
        return convert.to_list_imports_response(WD.ListImportsResponse.model_validate(r.json()))

    def cancel_import(self, import_id: str) -> None:
        self._rest.request("DELETE", f"/bulk/imports/{import_id}", error_prefix="failed to cancel import")

    # ------------ namespaces ------------
    def create_namespace(self, name: str, schema: M.MetadataSchema | None = None) -> M.NamespaceDescription:
        if not name:
            raise InvalidRequest("namespace name must be provided")
        req = pb.CreateNamespaceRequest(name=name)
        if schema is not None:
            req.schema.CopyFrom(convert.schema_to_grpc(schema))
        return convert.to_namespace_description(self._call("CreateNamespace", req))

    def describe_namespace(self, name: str) -> M.NamespaceDescription:
        res = self._call("DescribeNamespace", pb.DescribeNamespaceRequest(namespace=name))
        return convert.to_namespace_description(res)

    def list_namespaces(
        self,
        prefix: str | None = None,
        limit: int | None = None,
        pagination_token: str | None = None,
    ) -> M.ListNamespacesResponse:
        req = pb.ListNamespacesRequest()
        if prefix is not None:
            req.prefix = prefix
        if limit is not None:
            req.limit = limit
        if pagination_token is not None:
            req.pagination_token = pagination_token
        return convert.to_list_namespaces_response(self._call("ListNamespaces", req))

    def delete_namespace(self, name: str) -> None:
        self._call("DeleteNamespace", pb.DeleteNamespaceRequest(namespace=name))
