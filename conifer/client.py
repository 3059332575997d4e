# conifer/client.py
from __future__ import annotations
from typing import Any, Mapping, Sequence

import grpc
import httpx

from . import convert
from . import models as M
from .config import API_VERSION, ClientConfig
from .exceptions import InvalidRequest
from .headers import API_VERSION_HEADER, build_shared_headers, extract_auth_header
from .http import RestClient
from .index_connection import IndexConnection
from .inference import InferenceService
from .wire import control as W


class Client:
    """Control-plane client; also opens data-plane connections via ``index``.

    The underlying ``httpx.Client`` is shared by control-plane and inference
    calls and may be supplied by the caller.
    """

    def __init__(self, config: ClientConfig | None = None, *, http_client: httpx.Client | None = None):
        self.cfg = config or ClientConfig()
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=self.cfg.timeout_s)
        self.headers = build_shared_headers(self.cfg)
        self._rest = RestClient(self._http, self.cfg.controller_host(), self.headers, self.cfg.retries)
        self.inference = InferenceService(self._rest)

    @classmethod
    def with_api_key(cls, api_key: str | None = None, *, http_client: httpx.Client | None = None,
                     **config_kwargs) -> "Client":
        return cls(ClientConfig.with_api_key(api_key, **config_kwargs), http_client=http_client)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ------------ Data plane ------------
    def index(
        self,
        host: str,
        namespace: str = "",
        additional_metadata: Mapping[str, str] | None = None,
        *,
        grpc_options: Sequence[tuple[str, Any]] = (),
        channel_credentials: grpc.ChannelCredentials | None = None,
    ) -> IndexConnection:
        metadata = dict(additional_metadata or {})
        if not any(k.lower() == API_VERSION_HEADER.lower() for k in metadata):
            metadata[API_VERSION_HEADER] = API_VERSION
        metadata.update(extract_auth_header(self.cfg.headers))
        return IndexConnection(
            host,
            http=self._http,
            rest_headers=self.headers,
            namespace=namespace,
            metadata=metadata,
            source_tag=self.cfg.source_tag,
            grpc_options=grpc_options,
            channel_credentials=channel_credentials,
            timeout_s=self.cfg.timeout_s,
            retries=self.cfg.retries,
        )

    # ------------ Indexes ------------
    def list_indexes(self) -> list[M.Index]:
        r = self._rest.request("GET", "/indexes", error_prefix="failed to list indexes")
        out = W.IndexList.model_validate(r.json())
        return [convert.to_index(i) for i in out.indexes or []]

    def create_pod_index(self, req: M.CreatePodIndexRequest) -> M.Index:
        if not req.name or req.dimension <= 0 or not req.environment or not req.pod_type:
            raise InvalidRequest(
                "fields Name, positive Dimension, Environment, and Podtype must be included in CreatePodIndexRequest"
            )
        body = W.CreateIndexRequest(
            name=req.name,
            dimension=req.dimension,
            metric=_enum_value(req.metric),
            deletion_protection=_enum_value(req.deletion_protection),
            tags=req.tags,
            vector_type="dense",
            spec=W.IndexSpecModel(pod=W.PodSpecModel(
                environment=req.environment,
                pod_type=req.pod_type,
                pods=req.total_count(),
                replicas=req.replica_count(),
                shards=req.shard_count(),
                source_collection=req.source_collection,
                metadata_config=(
                    W.PodMetadataConfig(indexed=req.metadata_config.indexed)
                    if req.metadata_config is not None else None
                ),
            )),
        )
        return self._create_index("/indexes", body.model_dump(by_alias=True, exclude_none=True))

    def create_serverless_index(self, req: M.CreateServerlessIndexRequest) -> M.Index:
        if not req.name or not req.cloud or not req.region:
            raise InvalidRequest("fields Name, Cloud, and Region must be included in CreateServerlessIndexRequest")
        vector_type = req.vector_type or "dense"
        metric = _enum_value(req.metric)
        if vector_type == "sparse":
            if req.dimension is not None:
                raise InvalidRequest("Dimension should not be set when VectorType is 'sparse'")
            if metric is not None and metric != M.IndexMetric.DOTPRODUCT.value:
                raise InvalidRequest("Metric should be 'dotproduct' when VectorType is 'sparse'")
            metric = M.IndexMetric.DOTPRODUCT.value
        elif vector_type == "dense":
            if req.dimension is None:
                raise InvalidRequest("Dimension should be set when VectorType is 'dense'")
        else:
            raise InvalidRequest(f"unsupported VectorType {vector_type!r}, expected 'dense' or 'sparse'")
        body = W.CreateIndexRequest(
            name=req.name,
            dimension=req.dimension,
            metric=metric,
            deletion_protection=_enum_value(req.deletion_protection),
            tags=req.tags,
            vector_type=vector_type,
            spec=W.IndexSpecModel(serverless=W.ServerlessSpecModel(
                cloud=_enum_value(req.cloud),
                region=req.region,
                source_collection=req.source_collection,
                read_capacity=convert.read_capacity_to_wire(req.read_capacity),
                schema=convert.schema_to_wire(req.schema_),
            )),
        )
        return self._create_index("/indexes", body.model_dump(by_alias=True, exclude_none=True))

    def create_index_for_model(self, req: M.CreateIndexForModelRequest) -> M.Index:
        if not req.name or not req.cloud or not req.region or not req.embed.model:
            raise InvalidRequest(
                "fields Name, Cloud, Region, and Embed.Model must be included in CreateIndexForModelRequest"
            )
        e = req.embed
        body = W.CreateIndexForModelRequest(
            name=req.name,
            cloud=_enum_value(req.cloud),
            region=req.region,
            deletion_protection=_enum_value(req.deletion_protection) or M.DeletionProtection.DISABLED.value,
            tags=req.tags,
            read_capacity=convert.read_capacity_to_wire(req.read_capacity),
            schema=convert.schema_to_wire(req.schema_),
            embed=W.CreateIndexForModelEmbed(
                model=e.model,
                field_map=e.field_map,
                dimension=e.dimension,
                metric=_enum_value(e.metric),
                read_parameters=e.read_parameters,
                write_parameters=e.write_parameters,
            ),
        )
        return self._create_index("/indexes/create-for-model", body.model_dump(by_alias=True, exclude_none=True))

    def _create_index(self, path: str, body: dict[str, Any]) -> M.Index:
        r = self._rest.request("POST", path, json=body, expect=(201,), error_prefix="failed to create index")
        return convert.to_index(W.IndexModel.model_validate(r.json()))

    def describe_index(self, name: str) -> M.Index:
        r = self._rest.request("GET", f"/indexes/{name}", error_prefix="failed to describe index")
        return convert.to_index(W.IndexModel.model_validate(r.json()))

    def delete_index(self, name: str) -> None:
        self._rest.request("DELETE", f"/indexes/{name}", expect=(202,), error_prefix="failed to delete index")

    def configure_index(self, name: str, params: M.ConfigureIndexParams) -> M.Index:
        """Change pod size, replicas, deletion protection, tags, embed or read capacity.

        Tags are merged over the index's current tags, so configuring one
        tag never drops the others.
        """
        if (params.pod_type is None and params.replicas is None and params.deletion_protection is None
                and params.tags is None and params.embed is None and params.read_capacity is None):
            raise InvalidRequest(
                "must specify PodType, Replicas, DeletionProtection, Embed, ReadCapacity, "
                "or Tags when configuring an index"
            )
        pod_settings = params.pod_type is not None or params.replicas is not None
        if pod_settings and params.read_capacity is not None:
            raise InvalidRequest(
                "PodType and Replicas apply to pod indexes and ReadCapacity to serverless indexes, "
                "they cannot be configured together"
            )
        spec = None
        if pod_settings:
            spec = W.ConfigureSpec(pod=W.ConfigurePodSpec(pod_type=params.pod_type, replicas=params.replicas))
        elif params.read_capacity is not None:
            spec = W.ConfigureSpec(serverless=W.ConfigureServerlessSpec(
                read_capacity=convert.read_capacity_to_wire(params.read_capacity)
            ))
        tags = None
        if params.tags is not None:
            current = self.describe_index(name)
            tags = convert.merge_index_tags(current.tags, params.tags)
        body = W.ConfigureIndexRequest(
            spec=spec,
            deletion_protection=_enum_value(params.deletion_protection),
            tags=tags,
            embed=W.ConfigureEmbed(**params.embed.model_dump()) if params.embed is not None else None,
        )
        r = self._rest.request("PATCH", f"/indexes/{name}", json=body.model_dump(exclude_none=True),
                               error_prefix="failed to configure index")
        return convert.to_index(W.IndexModel.model_validate(r.json()))

    # ------------ Collections ------------
    def list_collections(self) -> list[M.Collection]:
        r = self._rest.request("GET", "/collections", error_prefix="failed to list collections")
        out = W.CollectionList.model_validate(r.json())
        return [convert.to_collection(c) for c in out.collections or []]

    def describe_collection(self, name: str) -> M.Collection:
        r = self._rest.request("GET", f"/collections/{name}", error_prefix="failed to describe collection")
        return convert.to_collection(W.CollectionModel.model_validate(r.json()))

    def create_collection(self, req: M.CreateCollectionRequest) -> M.Collection:
        if not req.name or not req.source:
            raise InvalidRequest("fields Name and Source must be included in CreateCollectionRequest")
        body = W.CreateCollectionRequest(name=req.name, source=req.source).model_dump()
        r = self._rest.request("POST", "/collections", json=body, expect=(201,),
                               error_prefix="failed to create collection")
        return convert.to_collection(W.CollectionModel.model_validate(r.json()))

    def delete_collection(self, name: str) -> None:
        self._rest.request("DELETE", f"/collections/{name}", expect=(202,),
                           error_prefix="failed to delete collection")

    # ------------ Backups ------------
    def create_backup(self, params: M.CreateBackupParams) -> M.Backup:
        if not params.index_name:
            raise InvalidRequest("IndexName must be provided to create a backup")
        body = W.CreateBackupRequest(name=params.name, description=params.description)
        r = self._rest.request("POST", f"/indexes/{params.index_name}/backups",
                               json=body.model_dump(exclude_none=True), expect=(200, 201),
                               error_prefix="failed to create backup")
        return convert.to_backup(W.BackupModel.model_validate(r.json()))

    def create_index_from_backup(self, params: M.CreateIndexFromBackupParams) -> M.CreateIndexFromBackupResponse:
        if not params.backup_id or not params.name:
            raise InvalidRequest("BackupId and Name must be provided to create an index from a backup")
        body = W.CreateIndexFromBackupRequest(
            name=params.name,
            deletion_protection=_enum_value(params.deletion_protection),
            tags=params.tags,
        )
        r = self._rest.request("POST", f"/backups/{params.backup_id}/create-index",
                               json=body.model_dump(exclude_none=True), expect=(202,),
                               error_prefix="failed to create index from backup")
        out = W.CreateIndexFromBackupResponse.model_validate(r.json())
        return M.CreateIndexFromBackupResponse(index_id=out.index_id, restore_job_id=out.restore_job_id)

    def describe_backup(self, backup_id: str) -> M.Backup:
        if not backup_id:
            raise InvalidRequest("BackupId must be provided to describe a backup")
        r = self._rest.request("GET", f"/backups/{backup_id}", error_prefix="failed to describe backup")
        return convert.to_backup(W.BackupModel.model_validate(r.json()))

    def list_backups(self, params: M.ListBackupsParams | None = None) -> M.BackupList:
        params = params or M.ListBackupsParams()
        path = f"/indexes/{params.index_name}/backups" if params.index_name else "/backups"
        r = self._rest.request("GET", path,
                               params={"limit": params.limit, "paginationToken": params.pagination_token},
                               error_prefix="failed to list backups")
        return convert.to_backup_list(W.BackupList.model_validate(r.json()))

    def delete_backup(self, backup_id: str) -> None:
        if not backup_id:
            raise InvalidRequest("BackupId must be provided to delete a backup")
        self._rest.request("DELETE", f"/backups/{backup_id}", expect=(202,),
                           error_prefix="failed to delete backup")

    # ------------ Restore jobs ------------
    def describe_restore_job(self, restore_job_id: str) -> M.RestoreJob:
        if not restore_job_id:
            raise InvalidRequest("RestoreJobId must be provided to describe a restore job")
        r = self._rest.request("GET", f"/restore-jobs/{restore_job_id}",
                               error_prefix="failed to describe restore job")
        return convert.to_restore_job(W.RestoreJobModel.model_validate(r.json()))

    def list_restore_jobs(self, params: M.ListRestoreJobsParams | None = None) -> M.RestoreJobList:
        params = params or M.ListRestoreJobsParams()
        r = self._rest.request("GET", "/restore-jobs",
                               params={"limit": params.limit, "paginationToken": params.pagination_token},
                               error_prefix="failed to list restore jobs")
        return convert.to_restore_job_list(W.RestoreJobList.model_validate(r.json()))


def _enum_value(v):
    return v.value if hasattr(v, "value") else v
