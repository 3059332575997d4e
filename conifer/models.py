# conifer/models.py
from __future__ import annotations
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

Metadata = dict[str, Any]
VectorType = Literal["dense", "sparse"]


class IndexMetric(str, Enum):
    COSINE = "cosine"
    DOTPRODUCT = "dotproduct"
    EUCLIDEAN = "euclidean"


class Cloud(str, Enum):
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


class IndexStatusState(str, Enum):
    INITIALIZATION_FAILED = "InitializationFailed"
    INITIALIZING = "Initializing"
    READY = "Ready"
    SCALING_DOWN = "ScalingDown"
    SCALING_DOWN_POD_SIZE = "ScalingDownPodSize"
    SCALING_UP = "ScalingUp"
    SCALING_UP_POD_SIZE = "ScalingUpPodSize"
    TERMINATING = "Terminating"


class CollectionStatus(str, Enum):
    INITIALIZING = "Initializing"
    READY = "Ready"
    TERMINATING = "Terminating"


class DeletionProtection(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class ImportStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    FAILED = "Failed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# -------- Index --------
class IndexStatus(BaseModel):
    ready: bool
    state: IndexStatusState | str


class PodSpecMetadataConfig(BaseModel):
    indexed: list[str] | None = None


class PodSpec(BaseModel):
    environment: str
    pod_type: str
    pod_count: int = 1
    replicas: int = 1
    shard_count: int = 1
    source_collection: str | None = None
    metadata_config: PodSpecMetadataConfig | None = None


class MetadataSchemaField(BaseModel):
    filterable: bool


class MetadataSchema(BaseModel):
    fields: dict[str, MetadataSchemaField] = Field(default_factory=dict)


class ReadCapacityStatus(BaseModel):
    state: str | None = None
    current_replicas: int | None = None
    current_shards: int | None = None
    error_message: str | None = None


class ReadCapacityDedicated(BaseModel):
    node_type: str
    replicas: int = 1
    shards: int = 1


class ReadCapacity(BaseModel):
    """How reads are provisioned; ``dedicated`` is None in on-demand mode."""
    mode: Literal["OnDemand", "Dedicated"] = "OnDemand"
    dedicated: ReadCapacityDedicated | None = None
    status: ReadCapacityStatus | None = None


class ServerlessSpec(BaseModel):
    cloud: Cloud | str
    region: str
    source_collection: str | None = None
    read_capacity: ReadCapacity | None = None
    schema_: MetadataSchema | None = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class BYOCSpec(BaseModel):
    environment: str


class IndexSpec(BaseModel):
    pod: PodSpec | None = None
    serverless: ServerlessSpec | None = None
    byoc: BYOCSpec | None = None


class IndexEmbed(BaseModel):
    model: str
    dimension: int | None = None
    metric: IndexMetric | str | None = None
    vector_type: str | None = None
    field_map: dict[str, Any] | None = None
    read_parameters: dict[str, Any] | None = None
    write_parameters: dict[str, Any] | None = None


class Index(BaseModel):
    name: str
    host: str
    metric: IndexMetric | str
    vector_type: str = "dense"
    deletion_protection: DeletionProtection = DeletionProtection.DISABLED
    dimension: int | None = None
    private_host: str | None = None
    spec: IndexSpec | None = None
    status: IndexStatus | None = None
    tags: dict[str, str] | None = None
    embed: IndexEmbed | None = None


# -------- Collections --------
class Collection(BaseModel):
    name: str
    size: int = 0
    status: CollectionStatus | str
    dimension: int = 0
    vector_count: int = 0
    environment: str


# -------- Backups / restore jobs --------
class Pagination(BaseModel):
    next: str


class Backup(BaseModel):
    backup_id: str
    source_index_name: str
    source_index_id: str
    status: str
    cloud: str
    region: str
    name: str | None = None
    description: str | None = None
    dimension: int | None = None
    metric: IndexMetric | str | None = None
    record_count: int | None = None
    namespace_count: int | None = None
    size_bytes: int | None = None
    tags: dict[str, str] | None = None
    created_at: str | None = None
    schema_: MetadataSchema | None = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class BackupList(BaseModel):
    data: list[Backup] = Field(default_factory=list)
    pagination: Pagination | None = None


class RestoreJob(BaseModel):
    restore_job_id: str
    backup_id: str
    target_index_name: str
    target_index_id: str
    status: str
    created_at: str
    completed_at: str | None = None
    percent_complete: float | None = None


class RestoreJobList(BaseModel):
    data: list[RestoreJob] = Field(default_factory=list)
    pagination: Pagination | None = None


# -------- Vectors --------
class SparseValues(BaseModel):
    indices: list[int]
    values: list[float]


class Vector(BaseModel):
    id: str
    values: list[float] | None = None
    sparse_values: SparseValues | None = None
    metadata: Metadata | None = None


class ScoredVector(BaseModel):
    vector: Vector
    score: float


class Usage(BaseModel):
    read_units: int


class NamespaceSummary(BaseModel):
    vector_count: int


# -------- Inference --------
class Embedding(BaseModel):
    """One embedding; dense ones set ``values``, sparse ones the sparse_* fields."""
    vector_type: VectorType
    values: list[float] | None = None
    sparse_values: list[float] | None = None
    sparse_indices: list[int] | None = None
    sparse_tokens: list[str] | None = None


class EmbedUsage(BaseModel):
    total_tokens: int | None = None


class EmbedResponse(BaseModel):
    model: str
    vector_type: str = "dense"
    data: list[Embedding] = Field(default_factory=list)
    usage: EmbedUsage = Field(default_factory=EmbedUsage)


class RankedDocument(BaseModel):
    index: int
    score: float
    document: dict[str, Any] | None = None


class RerankUsage(BaseModel):
    rerank_units: int | None = None


class RerankResponse(BaseModel):
    model: str
    data: list[RankedDocument] = Field(default_factory=list)
    usage: RerankUsage = Field(default_factory=RerankUsage)


class SupportedParameter(BaseModel):
    parameter: str
    type: str
    value_type: str
    required: bool = False
    allowed_values: list[Any] | None = None
    default: Any | None = None


class ModelInfo(BaseModel):
    model: str
    type: str
    short_description: str = ""
    vector_type: str | None = None
    default_dimension: int | None = None
    supported_dimensions: list[int] | None = None
    supported_metrics: list[str] | None = None
    modality: str | None = None
    max_sequence_length: int | None = None
    max_batch_size: int | None = None
    provider_name: str | None = None
    supported_parameters: list[SupportedParameter] = Field(default_factory=list)


class ModelInfoList(BaseModel):
    models: list[ModelInfo] = Field(default_factory=list)


# -------- Records / imports / namespaces --------
class Import(BaseModel):
    id: str
    uri: str
    status: ImportStatus | str
    created_at: str | None = None
    finished_at: str | None = None
    percent_complete: float | None = None
    records_imported: int | None = None
    error: str | None = None


class NamespaceDescription(BaseModel):
    name: str
    record_count: int = 0
    schema_: MetadataSchema | None = Field(default=None, alias="schema")
    indexed_fields: list[str] | None = None

    model_config = {"populate_by_name": True}


class Hit(BaseModel):
    id: str
    score: float
    fields: dict[str, Any] = Field(default_factory=dict)


class SearchUsage(BaseModel):
    read_units: int = 0
    embed_total_tokens: int | None = None
    rerank_units: int | None = None


class SearchRecordsResponse(BaseModel):
    hits: list[Hit] = Field(default_factory=list)
    usage: SearchUsage = Field(default_factory=SearchUsage)


# -------- Requests --------
class CreatePodIndexRequest(BaseModel):
    name: str
    dimension: int
    environment: str
    pod_type: str
    metric: IndexMetric | None = None
    deletion_protection: DeletionProtection | None = None
    shards: int = 1
    replicas: int = 1
    source_collection: str | None = None
    metadata_config: PodSpecMetadataConfig | None = None
    tags: dict[str, str] | None = None

    def replica_count(self) -> int:
        return max(1, self.replicas)

    def shard_count(self) -> int:
        return max(1, self.shards)

    def total_count(self) -> int:
        return self.replica_count() * self.shard_count()


class CreateServerlessIndexRequest(BaseModel):
    name: str
    cloud: Cloud | str
    region: str
    dimension: int | None = None
    metric: IndexMetric | None = None
    vector_type: str | None = None
    deletion_protection: DeletionProtection | None = None
    source_collection: str | None = None
    read_capacity: ReadCapacity | None = None
    schema_: MetadataSchema | None = Field(default=None, alias="schema")
    tags: dict[str, str] | None = None

    model_config = {"populate_by_name": True}


class CreateIndexForModelEmbed(BaseModel):
    model: str
    field_map: dict[str, Any] = Field(default_factory=dict)
    dimension: int | None = None
    metric: IndexMetric | None = None
    read_parameters: dict[str, Any] | None = None
    write_parameters: dict[str, Any] | None = None


class CreateIndexForModelRequest(BaseModel):
    name: str
    cloud: Cloud | str
    region: str
    embed: CreateIndexForModelEmbed
    deletion_protection: DeletionProtection | None = None
    read_capacity: ReadCapacity | None = None
    schema_: MetadataSchema | None = Field(default=None, alias="schema")
    tags: dict[str, str] | None = None

    model_config = {"populate_by_name": True}


class ConfigureIndexEmbed(BaseModel):
    model: str | None = None
    field_map: dict[str, Any] | None = None
    read_parameters: dict[str, Any] | None = None
    write_parameters: dict[str, Any] | None = None


class ConfigureIndexParams(BaseModel):
    pod_type: str | None = None
    replicas: int | None = None
    deletion_protection: DeletionProtection | None = None
    tags: dict[str, str] | None = None
    embed: ConfigureIndexEmbed | None = None
    read_capacity: ReadCapacity | None = None


class CreateCollectionRequest(BaseModel):
    name: str
    source: str


class CreateBackupParams(BaseModel):
    index_name: str
    name: str | None = None
    description: str | None = None


class CreateIndexFromBackupParams(BaseModel):
    backup_id: str
    name: str
    deletion_protection: DeletionProtection | None = None
    tags: dict[str, str] | None = None


class CreateIndexFromBackupResponse(BaseModel):
    index_id: str
    restore_job_id: str


class ListBackupsParams(BaseModel):
    index_name: str | None = None
    limit: int | None = None
    pagination_token: str | None = None


class ListRestoreJobsParams(BaseModel):
    limit: int | None = None
    pagination_token: str | None = None


class EmbedRequest(BaseModel):
    model: str
    text_inputs: list[str]
    parameters: dict[str, Any] | None = None


class RerankRequest(BaseModel):
    model: str
    query: str
    documents: list[dict[str, Any]]
    rank_fields: list[str] | None = None
    return_documents: bool | None = None
    top_n: int | None = None
    parameters: dict[str, Any] | None = None


class ListModelsParams(BaseModel):
    type: str | None = None
    vector_type: str | None = None


class UpdateVectorRequest(BaseModel):
    id: str
    values: list[float] | None = None
    sparse_values: SparseValues | None = None
    metadata: Metadata | None = None


class ListVectorsRequest(BaseModel):
    prefix: str | None = None
    limit: int | None = None
    pagination_token: str | None = None


class QueryByVectorValuesRequest(BaseModel):
    vector: list[float] | None = None
    top_k: int
    metadata_filter: Metadata | None = None
    include_values: bool = False
    include_metadata: bool = False
    sparse_values: SparseValues | None = None


class QueryByVectorIdRequest(BaseModel):
    vector_id: str
    top_k: int
    metadata_filter: Metadata | None = None
    include_values: bool = False
    include_metadata: bool = False
    sparse_values: SparseValues | None = None


class SearchRecordsVector(BaseModel):
    values: list[float] | None = None
    sparse_values: list[float] | None = None
    sparse_indices: list[int] | None = None


class SearchRecordsQuery(BaseModel):
    top_k: int
    filter: Metadata | None = None
    inputs: dict[str, Any] | None = None
    vector: SearchRecordsVector | None = None
    id: str | None = None


class SearchRecordsRerank(BaseModel):
    model: str
    rank_fields: list[str]
    top_n: int | None = None
    parameters: dict[str, Any] | None = None
    query: str | None = None


class SearchRecordsRequest(BaseModel):
    query: SearchRecordsQuery
    fields: list[str] | None = None
    rerank: SearchRecordsRerank | None = None


# -------- Responses --------
class FetchVectorsResponse(BaseModel):
    vectors: dict[str, Vector] = Field(default_factory=dict)
    usage: Usage | None = None
    namespace: str


class ListVectorsResponse(BaseModel):
    vector_ids: list[str] = Field(default_factory=list)
    usage: Usage | None = None
    next_pagination_token: str | None = None
    namespace: str


class QueryVectorsResponse(BaseModel):
    matches: list[ScoredVector] = Field(default_factory=list)
    usage: Usage | None = None
    namespace: str


class DescribeIndexStatsResponse(BaseModel):
    dimension: int | None = None
    index_fullness: float = 0.0
    total_vector_count: int = 0
    namespaces: dict[str, NamespaceSummary] = Field(default_factory=dict)
    metric: IndexMetric | str | None = None
    vector_type: str | None = None


class StartImportResponse(BaseModel):
    id: str


class ListImportsResponse(BaseModel):
    imports: list[Import] = Field(default_factory=list)
    next_pagination_token: str | None = None


class ListNamespacesResponse(BaseModel):
    namespaces: list[NamespaceDescription] = Field(default_factory=list)
    next_pagination_token: str | None = None
    total_count: int | None = None


# -------- Admin --------
class Project(BaseModel):
    id: str
    name: str
    max_pods: int = 0                       # 0 means serverless only
    force_encryption_with_cmek: bool = False
    organization_id: str = ""
    created_at: str | None = None


class Organization(BaseModel):
    id: str
    name: str
    plan: str = ""
    payment_status: str = ""
    support_tier: str = ""
    created_at: str | None = None


class ApiKey(BaseModel):
    id: str
    name: str
    project_id: str
    roles: list[str] = Field(default_factory=list)


class ApiKeyWithSecret(BaseModel):
    """A freshly created key; ``value`` is only ever returned once."""
    key: ApiKey
    value: str


class CreateProjectParams(BaseModel):
    name: str
    max_pods: int | None = None
    force_encryption_with_cmek: bool | None = None


class UpdateProjectParams(BaseModel):
    name: str | None = None
    max_pods: int | None = None
    force_encryption_with_cmek: bool | None = None


class UpdateOrganizationParams(BaseModel):
    name: str | None = None


class CreateApiKeyParams(BaseModel):
    name: str
    roles: list[str] | None = None


class UpdateApiKeyParams(BaseModel):
    name: str | None = None
    roles: list[str] | None = None
