# conifer_local/services/vectors.py
from __future__ import annotations

import logging
from typing import Any

from conifer_local.config import Settings
from conifer_local.domain.errors import BadRequestError, NotFoundError
from conifer_local.domain.models import DEFAULT_NAMESPACE, IndexRecord, SparseVec, StoredVector
from conifer_local.repo.indices.flat import FlatIndex
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.filters import match_metadata
from conifer_local.services.pagination import paginate
from conifer_local.services.validation import ensure_dim, ensure_sparse, ensure_vector

log = logging.getLogger("conifer_local")


def _ns(namespace: str | None) -> str:
    return namespace or DEFAULT_NAMESPACE


def _sparse_map(sv: SparseVec | None) -> dict[int, float] | None:
    return dict(zip(sv.indices, sv.values)) if sv is not None else None


class VectorService:
    """Vector reads and writes within one index's namespaces.

    Writers take the index's write lock; readers take the read lock.
    """

    def __init__(self, repo: InMemoryRepo, settings: Settings):
        self.repo = repo
        self.settings = settings

    # -------------------------
    # Writes
    # -------------------------
    def upsert(self, idx: IndexRecord, namespace: str | None, vectors: list[StoredVector]) -> int:
        if not vectors:
            raise BadRequestError("No vectors provided")
        for v in vectors:
            ensure_vector(idx, v)
        lock = self.repo.get_lock(idx.name)
        lock.acquire_write()
        try:
            ns = idx.namespaces.setdefault(_ns(namespace), {})
            for v in vectors:
                ns[v.id] = v
        finally:
            lock.release_write()
        log.info("[upsert] index=%s namespace=%s count=%d", idx.name, _ns(namespace), len(vectors))
        return len(vectors)

    def update(self, idx: IndexRecord, namespace: str | None, vector_id: str,
               values: list[float] | None, sparse: SparseVec | None,
               set_metadata: dict[str, Any] | None) -> None:
        if not vector_id:
            raise BadRequestError("Vector ID must not be empty")
        if values:
            if idx.vector_type == "sparse":
                raise BadRequestError("Sparse indexes do not accept dense values")
            ensure_dim(idx, values)
        if sparse is not None:
            ensure_sparse(sparse)
        lock = self.repo.get_lock(idx.name)
        lock.acquire_write()
        try:
            cur = idx.namespaces.get(_ns(namespace), {}).get(vector_id)
            if cur is None:
                raise NotFoundError(f"Vector {vector_id}")
            if values:
                cur.values = list(values)
            if sparse is not None:
                cur.sparse = sparse
            if set_metadata:
                cur.metadata = {**(cur.metadata or {}), **set_metadata}
        finally:
            lock.release_write()

    def delete(self, idx: IndexRecord, namespace: str | None, ids: list[str] | None = None,
               delete_all: bool = False, flt: dict[str, Any] | None = None) -> None:
        if sum(bool(x) for x in (ids, delete_all, flt)) != 1:
            raise BadRequestError("Exactly one of ids, delete_all or filter must be provided")
        name = _ns(namespace)
        lock = self.repo.get_lock(idx.name)
        lock.acquire_write()
        try:
            if delete_all:
                idx.namespaces.pop(name, None)
                return
            ns = idx.namespaces.get(name)
            if not ns:
                return
            if ids:
                for vid in ids:
                    ns.pop(vid, None)
            else:
                for vid in [vid for vid, v in ns.items() if match_metadata(v.metadata, flt)]:
                    del ns[vid]
        finally:
            lock.release_write()

    # -------------------------
    # Reads
    # -------------------------
    def fetch(self, idx: IndexRecord, namespace: str | None, ids: list[str]) -> dict[str, StoredVector]:
        if not ids:
            raise BadRequestError("No IDs provided for fetch")
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            ns = idx.namespaces.get(_ns(namespace), {})
            return {vid: ns[vid].model_copy(deep=True) for vid in ids if vid in ns}
        finally:
            lock.release_read()

    def list_ids(self, idx: IndexRecord, namespace: str | None, prefix: str | None,
                 limit: int | None, token: str | None) -> tuple[list[str], str | None]:
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            ids = sorted(idx.namespaces.get(_ns(namespace), {}))
        finally:
            lock.release_read()
        if prefix:
            ids = [i for i in ids if i.startswith(prefix)]
        return paginate(ids, limit, token, default_limit=100, max_limit=100)

    def query(self, idx: IndexRecord, namespace: str | None, top_k: int, *,
              vector: list[float] | None = None, sparse: SparseVec | None = None,
              vector_id: str | None = None,
              flt: dict[str, Any] | None = None) -> list[tuple[StoredVector, float]]:
        if top_k < 1 or top_k > self.settings.max_top_k:
            raise BadRequestError(f"top_k must be between 1 and {self.settings.max_top_k}")
        if vector_id and (vector or sparse is not None):
            raise BadRequestError("Cannot query by ID and by vector at the same time")
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            ns = idx.namespaces.get(_ns(namespace), {})
            if vector_id:
                src = ns.get(vector_id)
                if src is None:
                    return []
                vector, sparse = src.values, src.sparse
            if not vector and sparse is None:
                raise BadRequestError("A query vector, sparse vector or vector ID is required")
            if vector:
                ensure_dim(idx, vector)
            if sparse is not None:
                ensure_sparse(sparse)
            candidates = [v for v in ns.values() if match_metadata(v.metadata, flt)]
            flat = FlatIndex(metric=idx.metric)
            flat.rebuild((v.id, v.values, _sparse_map(v.sparse)) for v in candidates)
            top = flat.query(vector or None, _sparse_map(sparse), top_k)
            return [(ns[vid].model_copy(deep=True), score) for vid, score in top]
        finally:
            lock.release_read()

    def stats(self, idx: IndexRecord, flt: dict[str, Any] | None = None) -> dict[str, int]:
        """Per-namespace vector counts; empty namespaces are omitted."""
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            counts = {
                name: sum(1 for v in vecs.values() if match_metadata(v.metadata, flt))
                for name, vecs in idx.namespaces.items()
            }
        finally:
            lock.release_read()
        return {name: n for name, n in counts.items() if n > 0}

    # -------------------------
    # Namespaces
    # -------------------------
    def create_namespace(self, idx: IndexRecord, name: str, schema: dict[str, Any] | None) -> None:
        if idx.kind != "serverless":
            raise BadRequestError("Namespaces can only be created explicitly on serverless indexes")
        lock = self.repo.get_lock(idx.name)
        lock.acquire_write()
        try:
            if name in idx.namespaces:
                raise BadRequestError(f"Namespace {name} already exists")
            idx.namespaces[name] = {}
            if schema:
                idx.namespace_schemas[name] = schema
        finally:
            lock.release_write()

    def describe_namespace(self, idx: IndexRecord, name: str) -> tuple[int, dict[str, Any] | None]:
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            if name not in idx.namespaces:
                raise NotFoundError(f"Namespace {name}")
            return len(idx.namespaces[name]), idx.namespace_schemas.get(name)
        finally:
            lock.release_read()

    def list_namespaces(self, idx: IndexRecord, prefix: str | None, limit: int | None,
                        token: str | None) -> tuple[list[tuple[str, int]], str | None, int]:
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            rows = sorted((name, len(vecs)) for name, vecs in idx.namespaces.items())
        finally:
            lock.release_read()
        if prefix:
            rows = [r for r in rows if r[0].startswith(prefix)]
        page, next_token = paginate(rows, limit, token, default_limit=100, max_limit=100)
        return page, next_token, len(rows)

    def delete_namespace(self, idx: IndexRecord, name: str) -> None:
        lock = self.repo.get_lock(idx.name)
        lock.acquire_write()
        try:
            if idx.namespaces.pop(name, None) is None:
                raise NotFoundError(f"Namespace {name}")
            idx.namespace_schemas.pop(name, None)
        finally:
            lock.release_write()
