from __future__ import annotations
import re

from conifer_local.domain.errors import BadRequestError
from conifer_local.domain.models import IndexRecord, SparseVec, StoredVector

MAX_DIMENSION = 20000
_NAME = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")


def ensure_resource_name(name: str, what: str = "Index") -> None:
    if not name or len(name) > 45 or not _NAME.match(name):
        raise BadRequestError(
            f"{what} name must consist of lower case alphanumeric characters or '-', "
            "start and end with an alphanumeric character, and be at most 45 characters"
        )


def ensure_dimension(dimension: int | None) -> int:
    if dimension is None or dimension < 1 or dimension > MAX_DIMENSION:
        raise BadRequestError(f"Dimension must be between 1 and {MAX_DIMENSION}")
    return dimension


def ensure_dim(idx: IndexRecord, vec: list[float]) -> None:
    if idx.dimension is not None and len(vec) != idx.dimension:
        raise BadRequestError(
            f"Vector dimension {len(vec)} does not match the dimension of the index {idx.dimension}"
        )


def ensure_sparse(sv: SparseVec) -> None:
    if len(sv.indices) != len(sv.values):
        raise BadRequestError("Sparse vector indices and values must have the same length")
    if len(set(sv.indices)) != len(sv.indices):
        raise BadRequestError("Sparse vector indices must be unique")


def ensure_vector(idx: IndexRecord, v: StoredVector) -> None:
    """Check a vector against the index's vector type and dimension."""
    if not v.id:
        raise BadRequestError("Vector ID must not be empty")
    if v.sparse is not None:
        ensure_sparse(v.sparse)
    if idx.vector_type == "sparse":
        if v.values:
            raise BadRequestError("Sparse indexes do not accept dense values")
        if v.sparse is None or not v.sparse.indices:
            raise BadRequestError(f"Vector {v.id} must have sparse values for a sparse index")
        return
    if not v.values:
        raise BadRequestError(f"Vector {v.id} is missing dense values")
    ensure_dim(idx, v.values)
