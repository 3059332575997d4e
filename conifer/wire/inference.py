# conifer/wire/inference.py
"""JSON bodies of the inference REST API."""
from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, Field


class EmbedInput(BaseModel):
    text: str


class EmbedRequest(BaseModel):
    model: str
    inputs: list[EmbedInput]
    parameters: Optional[dict[str, Any]] = None


class EmbeddingModel(BaseModel):
    # dense embeddings carry ``values``, sparse ones the three sparse_* arrays
    vector_type: str = "dense"
    values: Optional[list[float]] = None
    sparse_values: Optional[list[float]] = None
    sparse_indices: Optional[list[int]] = None
    sparse_tokens: Optional[list[str]] = None


class EmbedUsage(BaseModel):
    total_tokens: Optional[int] = None


class EmbeddingsList(BaseModel):
    model: str
    vector_type: str = "dense"
    data: list[EmbeddingModel] = Field(default_factory=list)
    usage: EmbedUsage = Field(default_factory=EmbedUsage)


class RerankRequest(BaseModel):
    model: str
    query: str
    documents: list[dict[str, Any]]
    rank_fields: Optional[list[str]] = None
    return_documents: Optional[bool] = None
    top_n: Optional[int] = None
    parameters: Optional[dict[str, Any]] = None


class RankedDocumentModel(BaseModel):
    index: int
    score: float
    document: Optional[dict[str, Any]] = None


class RerankUsage(BaseModel):
    rerank_units: Optional[int] = None


class RerankResult(BaseModel):
    model: str
    data: list[RankedDocumentModel] = Field(default_factory=list)
    usage: RerankUsage = Field(default_factory=RerankUsage)


class SupportedParameter(BaseModel):
    parameter: str
    type: str
    value_type: str
    required: bool = False
    allowed_values: Optional[list[Any]] = None
    default: Optional[Any] = None


class ModelInfo(BaseModel):
    model: str
    short_description: str = ""
    type: str                                   # embed | rerank
    vector_type: Optional[str] = None
    default_dimension: Optional[int] = None
    supported_dimensions: Optional[list[int]] = None
    supported_metrics: Optional[list[str]] = None
    modality: Optional[str] = None
    max_sequence_length: Optional[int] = None
    max_batch_size: Optional[int] = None
    provider_name: Optional[str] = None
    supported_parameters: list[SupportedParameter] = Field(default_factory=list)


class ModelInfoList(BaseModel):
    models: Optional[list[ModelInfo]] = None
