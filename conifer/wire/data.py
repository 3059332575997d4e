# conifer/wire/data.py
"""JSON bodies of the REST half of the data plane (records, imports, namespaces)."""
from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, Field

from .control import MetadataSchemaModel, PaginationResponse


# ------------ Records ------------
class SearchVector(BaseModel):
    values: Optional[list[float]] = None
    sparse_values: Optional[list[float]] = None
    sparse_indices: Optional[list[int]] = None


class SearchQuery(BaseModel):
    top_k: int
    filter: Optional[dict[str, Any]] = None
    inputs: Optional[dict[str, Any]] = None
    vector: Optional[SearchVector] = None
    id: Optional[str] = None


class SearchRerank(BaseModel):
    model: str
    rank_fields: list[str]
    top_n: Optional[int] = None
    parameters: Optional[dict[str, Any]] = None
    query: Optional[str] = None


class SearchRecordsRequest(BaseModel):
    query: SearchQuery
    fields: Optional[list[str]] = None
    rerank: Optional[SearchRerank] = None


class HitModel(BaseModel):
    id: str = Field(alias="_id")
    score: float = Field(alias="_score")
    fields: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class SearchResult(BaseModel):
    hits: list[HitModel] = Field(default_factory=list)


class SearchUsage(BaseModel):
    read_units: int = 0
    embed_total_tokens: Optional[int] = None
    rerank_units: Optional[int] = None


class SearchRecordsResponse(BaseModel):
    result: SearchResult = Field(default_factory=SearchResult)
    usage: SearchUsage = Field(default_factory=SearchUsage)


# ------------ Bulk imports ------------
class ImportErrorMode(BaseModel):
    on_error: Optional[str] = None          # abort | continue


class StartImportRequest(BaseModel):
    uri: str
    integration_id: Optional[str] = None
    error_mode: Optional[ImportErrorMode] = None


class StartImportResponse(BaseModel):
    id: Optional[str] = None


class ImportModel(BaseModel):
    id: Optional[str] = None
    uri: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    finished_at: Optional[str] = None
    percent_complete: Optional[float] = None
    records_imported: Optional[int] = None
    error: Optional[str] = None


class ListImportsResponse(BaseModel):
    data: Optional[list[ImportModel]] = None
    pagination: Optional[PaginationResponse] = None


# ------------ Namespaces ------------
class NamespaceDescription(BaseModel):
    name: str
    record_count: int = 0
    schema_: Optional[MetadataSchemaModel] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class ListNamespacesResponse(BaseModel):
    namespaces: Optional[list[NamespaceDescription]] = None
    pagination: Optional[PaginationResponse] = None
    total_count: Optional[int] = None


class CreateNamespaceRequest(BaseModel):
    name: str
    schema_: Optional[MetadataSchemaModel] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}
