# conifer/wire/control.py
"""JSON bodies of the control-plane REST API, field for field."""
from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, Field


class PodMetadataConfig(BaseModel):
    indexed: Optional[list[str]] = None


class PodSpecModel(BaseModel):
    environment: str
    pod_type: str = "p1.x1"
    pods: Optional[int] = None
    replicas: Optional[int] = None
    shards: Optional[int] = None
    metadata_config: Optional[PodMetadataConfig] = None
    source_collection: Optional[str] = None


class SchemaField(BaseModel):
    filterable: bool = False


class MetadataSchemaModel(BaseModel):
    fields: dict[str, SchemaField] = Field(default_factory=dict)


class ManualScaling(BaseModel):
    replicas: int = 1
    shards: int = 1


class DedicatedCapacity(BaseModel):
    node_type: str
    scaling: str = "Manual"
    manual: Optional[ManualScaling] = None


class ReadCapacityStatus(BaseModel):
    state: Optional[str] = None
    current_replicas: Optional[int] = None
    current_shards: Optional[int] = None
    error_message: Optional[str] = None


class ReadCapacityModel(BaseModel):
    mode: str = "OnDemand"            # OnDemand | Dedicated
    dedicated: Optional[DedicatedCapacity] = None
    status: Optional[ReadCapacityStatus] = None


class ServerlessSpecModel(BaseModel):
    cloud: str
    region: str
    source_collection: Optional[str] = None
    read_capacity: Optional[ReadCapacityModel] = None
    schema_: Optional[MetadataSchemaModel] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class ByocSpecModel(BaseModel):
    environment: str


class IndexSpecModel(BaseModel):
    # exactly one variant is set
    serverless: Optional[ServerlessSpecModel] = None
    pod: Optional[PodSpecModel] = None
    byoc: Optional[ByocSpecModel] = None


class IndexStatusModel(BaseModel):
    ready: bool = False
    state: str = "Initializing"


class IndexEmbedModel(BaseModel):
    model: str
    metric: Optional[str] = None
    dimension: Optional[int] = None
    vector_type: Optional[str] = None
    field_map: Optional[dict[str, Any]] = None
    read_parameters: Optional[dict[str, Any]] = None
    write_parameters: Optional[dict[str, Any]] = None


class IndexModel(BaseModel):
    name: str
    dimension: Optional[int] = None
    metric: str = "cosine"
    host: str = ""
    private_host: Optional[str] = None
    spec: IndexSpecModel
    status: IndexStatusModel = Field(default_factory=IndexStatusModel)
    deletion_protection: Optional[str] = None
    tags: Optional[dict[str, str]] = None
    embed: Optional[IndexEmbedModel] = None
    vector_type: str = "dense"


class IndexList(BaseModel):
    indexes: Optional[list[IndexModel]] = None


class CreateIndexRequest(BaseModel):
    name: str
    dimension: Optional[int] = None
    metric: Optional[str] = None
    spec: IndexSpecModel
    deletion_protection: Optional[str] = None
    tags: Optional[dict[str, str]] = None
    vector_type: Optional[str] = None


class CreateIndexForModelEmbed(BaseModel):
    model: str
    field_map: dict[str, Any] = Field(default_factory=dict)
    dimension: Optional[int] = None
    metric: Optional[str] = None
    read_parameters: Optional[dict[str, Any]] = None
    write_parameters: Optional[dict[str, Any]] = None


class CreateIndexForModelRequest(BaseModel):
    name: str
    cloud: str
    region: str
    embed: CreateIndexForModelEmbed
    deletion_protection: Optional[str] = None
    read_capacity: Optional[ReadCapacityModel] = None
    schema_: Optional[MetadataSchemaModel] = Field(default=None, alias="schema")
    tags: Optional[dict[str, str]] = None

    model_config = {"populate_by_name": True}


class ConfigurePodSpec(BaseModel):
    pod_type: Optional[str] = None
    replicas: Optional[int] = None


class ConfigureServerlessSpec(BaseModel):
    read_capacity: Optional[ReadCapacityModel] = None


class ConfigureSpec(BaseModel):
    pod: Optional[ConfigurePodSpec] = None
    serverless: Optional[ConfigureServerlessSpec] = None


class ConfigureEmbed(BaseModel):
    model: Optional[str] = None
    field_map: Optional[dict[str, Any]] = None
    read_parameters: Optional[dict[str, Any]] = None
    write_parameters: Optional[dict[str, Any]] = None


class ConfigureIndexRequest(BaseModel):
    spec: Optional[ConfigureSpec] = None
    deletion_protection: Optional[str] = None
    tags: Optional[dict[str, str]] = None
    embed: Optional[ConfigureEmbed] = None


# ------------ Collections ------------
class CollectionModel(BaseModel):
    name: str
    size: Optional[int] = None
    status: str = "Initializing"
    dimension: Optional[int] = None
    vector_count: Optional[int] = None
    environment: str = ""


class CollectionList(BaseModel):
    collections: Optional[list[CollectionModel]] = None


class CreateCollectionRequest(BaseModel):
    name: str
    source: str


# ------------ Backups / restore jobs ------------
class PaginationResponse(BaseModel):
    next: str


class BackupModel(BaseModel):
    backup_id: str
    source_index_name: str
    source_index_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    status: str
    cloud: str
    region: str
    dimension: Optional[int] = None
    metric: Optional[str] = None
    record_count: Optional[int] = None
    namespace_count: Optional[int] = None
    size_bytes: Optional[int] = None
    tags: Optional[dict[str, str]] = None
    created_at: Optional[str] = None
    schema_: Optional[MetadataSchemaModel] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class BackupList(BaseModel):
    data: Optional[list[BackupModel]] = None
    pagination: Optional[PaginationResponse] = None


class CreateBackupRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CreateIndexFromBackupRequest(BaseModel):
    name: str
    deletion_protection: Optional[str] = None
    tags: Optional[dict[str, str]] = None


class CreateIndexFromBackupResponse(BaseModel):
    index_id: str
    restore_job_id: str


class RestoreJobModel(BaseModel):
    restore_job_id: str
    backup_id: str
    target_index_name: str
    target_index_id: str
    status: str
    created_at: str
    completed_at: Optional[str] = None
    percent_complete: Optional[float] = None


class RestoreJobList(BaseModel):
    data: Optional[list[RestoreJobModel]] = None
    pagination: Optional[PaginationResponse] = None


# ------------ Errors ------------
class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    status: int
    error: ErrorDetail
