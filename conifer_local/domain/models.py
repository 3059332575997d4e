from __future__ import annotations
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

UtcNow = lambda: datetime.now(timezone.utc)
NewId = lambda: str(uuid4())

DEFAULT_NAMESPACE = "__default__"


def iso(ts: datetime | None) -> str | None:
    return ts.isoformat().replace("+00:00", "Z") if ts else None


class SparseVec(BaseModel):
    indices: list[int]
    values: list[float]


class StoredVector(BaseModel):
    id: str
    values: list[float] | None = None
    sparse: SparseVec | None = None
    metadata: dict[str, Any] | None = None


# namespace name -> vector id -> vector
Namespaces = dict[str, dict[str, StoredVector]]


class IndexRecord(BaseModel):
    id: str = Field(default_factory=NewId)
    name: str
    dimension: int | None = None
    metric: Literal["cosine", "dotproduct", "euclidean"] = "cosine"
    vector_type: Literal["dense", "sparse"] = "dense"
    kind: Literal["serverless", "pod"] = "serverless"
    spec: dict[str, Any] = Field(default_factory=dict)     # wire spec variant body
    host: str = ""
    deletion_protection: Literal["enabled", "disabled"] = "disabled"
    tags: dict[str, str] | None = None
    embed: dict[str, Any] | None = None
    state: str = "Ready"
    created_at: datetime = Field(default_factory=UtcNow)
    namespaces: Namespaces = Field(default_factory=dict)
    namespace_schemas: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def record_count(self) -> int:
        return sum(len(vs) for vs in self.namespaces.values())


class CollectionRecord(BaseModel):
    name: str
    source: str
    status: str = "Ready"
    dimension: int
    environment: str
    created_at: datetime = Field(default_factory=UtcNow)
    namespaces: Namespaces = Field(default_factory=dict)

    def vector_count(self) -> int:
        return sum(len(vs) for vs in self.namespaces.values())


class BackupRecord(BaseModel):
    backup_id: str = Field(default_factory=NewId)
    source_index_name: str
    source_index_id: str
    name: str | None = None
    description: str | None = None
    status: str = "Ready"
    cloud: str
    region: str
    dimension: int | None = None
    metric: str
    vector_type: str = "dense"
    tags: dict[str, str] | None = None
    schema_: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=UtcNow)
    namespaces: Namespaces = Field(default_factory=dict)

    def record_count(self) -> int:
        return sum(len(vs) for vs in self.namespaces.values())


class RestoreJobRecord(BaseModel):
    restore_job_id: str = Field(default_factory=NewId)
    backup_id: str
    target_index_name: str
    target_index_id: str
    status: str = "Completed"
    created_at: datetime = Field(default_factory=UtcNow)
    completed_at: datetime | None = None
    percent_complete: float = 100.0


class ImportRecord(BaseModel):
    id: str
    uri: str
    integration_id: str | None = None
    error_mode: str = "continue"
    status: str = "InProgress"
    created_at: datetime = Field(default_factory=UtcNow)
    finished_at: datetime | None = None
    percent_complete: float = 0.0
    records_imported: int = 0
    error: str | None = None


def copy_namespaces(ns: Namespaces) -> Namespaces:
    return {name: {vid: v.model_copy(deep=True) for vid, v in vecs.items()} for name, vecs in ns.items()}
