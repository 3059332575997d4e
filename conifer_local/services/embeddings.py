from __future__ import annotations
import hashlib
import re
from collections import Counter
from typing import Any, Protocol

import numpy as np

from conifer_local.domain.errors import BadRequestError, NotFoundError

_TOKEN = re.compile(r"[a-z0-9]+")


class EmbeddingProvider(Protocol):
    def embed(self, texts: list[str], dim: int) -> list[list[float]]: ...


def _seed(text: str) -> int:
    return int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "little")


class StubEmbeddingProvider:
    """Deterministic pseudo-embeddings, stable across processes."""

    def embed(self, texts: list[str], dim: int) -> list[list[float]]:
        vecs = []
        for t in texts:
            rng = np.random.default_rng(_seed(t))
            v = rng.normal(size=dim).astype(np.float32)
            # L2 normalize for cosine
            v /= np.linalg.norm(v) + 1e-12
            vecs.append(v.tolist())
        return vecs

    def embed_sparse(self, texts: list[str]) -> list[tuple[list[int], list[float], list[str]]]:
        out = []
        for t in texts:
            counts = Counter(_TOKEN.findall(t.lower()))
            tokens = sorted(counts)
            indices = [_seed(tok) % (2**31 - 1) for tok in tokens]
            total = sum(counts.values()) or 1
            out.append((indices, [counts[tok] / total for tok in tokens], tokens))
        return out

    @staticmethod
    def count_tokens(texts: list[str]) -> int:
        return sum(len(_TOKEN.findall(t.lower())) for t in texts)


# ------------ model catalog ------------
def _param(parameter: str, type_: str, value_type: str, **kw) -> dict[str, Any]:
    return {"parameter": parameter, "type": type_, "value_type": value_type, **kw}


_INPUT_TYPE = _param("input_type", "one_of", "string", required=True,
                     allowed_values=["query", "passage"])
_TRUNCATE = _param("truncate", "one_of", "string", allowed_values=["END", "NONE"], default="END")

MODELS: dict[str, dict[str, Any]] = {
    "multilingual-e5-large": {
        "model": "multilingual-e5-large",
        "short_description": "Multilingual dense embedding model.",
        "type": "embed", "vector_type": "dense", "default_dimension": 1024,
        "supported_dimensions": [1024], "supported_metrics": ["cosine", "euclidean"],
        "modality": "text", "max_sequence_length": 507, "max_batch_size": 96,
        "provider_name": "Microsoft",
        "supported_parameters": [_INPUT_TYPE, _TRUNCATE],
    },
    "llama-text-embed-v2": {
        "model": "llama-text-embed-v2",
        "short_description": "Dense embedding model with selectable dimension.",
        "type": "embed", "vector_type": "dense", "default_dimension": 1024,
        "supported_dimensions": [384, 512, 768, 1024, 2048],
        "supported_metrics": ["cosine", "dotproduct"],
        "modality": "text", "max_sequence_length": 2048, "max_batch_size": 96,
        "provider_name": "NVIDIA",
        "supported_parameters": [
            _INPUT_TYPE, _TRUNCATE,
            _param("dimension", "one_of", "integer", allowed_values=[384, 512, 768, 1024, 2048], default=1024),
        ],
    },
    "pinecone-sparse-english-v0": {
        "model": "pinecone-sparse-english-v0",
        "short_description": "Sparse lexical embedding model.",
        "type": "embed", "vector_type": "sparse",
        "supported_metrics": ["dotproduct"],
        "modality": "text", "max_sequence_length": 512, "max_batch_size": 96,
        "provider_name": "Pinecone",
        "supported_parameters": [
            _INPUT_TYPE, _TRUNCATE,
            _param("return_tokens", "any", "boolean", default=False),
        ],
    },
    "bge-reranker-v2-m3": {
        "model": "bge-reranker-v2-m3",
        "short_description": "Multilingual reranking model.",
        "type": "rerank", "modality": "text", "max_sequence_length": 1024,
        "max_batch_size": 100, "provider_name": "BAAI",
        "supported_parameters": [_TRUNCATE],
    },
    "pinecone-rerank-v0": {
        "model": "pinecone-rerank-v0",
        "short_description": "Reranking model.",
        "type": "rerank", "modality": "text", "max_sequence_length": 512,
        "max_batch_size": 100, "provider_name": "Pinecone",
        "supported_parameters": [_TRUNCATE],
    },
}


def get_model(name: str, kind: str | None = None) -> dict[str, Any]:
    model = MODELS.get(name)
    if model is None:
        raise NotFoundError(f"Model {name}")
    if kind is not None and model["type"] != kind:
        raise BadRequestError(f"Model {name} does not support {kind}")
    return model


def embed_dimension(model: dict[str, Any], parameters: dict[str, Any] | None) -> int:
    dim = (parameters or {}).get("dimension", model["default_dimension"])
    if dim not in model["supported_dimensions"]:
        raise BadRequestError(f"dimension {dim} is not supported by model {model['model']}")
    return int(dim)
