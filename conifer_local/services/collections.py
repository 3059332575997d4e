from __future__ import annotations

import logging

from conifer.wire import control as W

from conifer_local.domain.errors import BadRequestError, ConflictError, NotFoundError
from conifer_local.domain.models import CollectionRecord, copy_namespaces
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.validation import ensure_resource_name

log = logging.getLogger("conifer_local")


class CollectionService:
    """Static snapshots of pod indexes."""

    def __init__(self, repo: InMemoryRepo):
        self.repo = repo

    def create(self, name: str, source: str) -> CollectionRecord:
        ensure_resource_name(name, "Collection")
        idx = self.repo.get_index(source)
        if idx.kind != "pod":
            raise BadRequestError("Collections can only be created from pod indexes")
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            namespaces = copy_namespaces(idx.namespaces)
        finally:
            lock.release_read()
        coll = CollectionRecord(
            name=name,
            source=source,
            dimension=idx.dimension or 0,
            environment=idx.spec.get("environment", ""),
            namespaces=namespaces,
        )
        with self.repo.guard:
            if name in self.repo.collections:
                raise ConflictError(f"Resource {name} already exists")
            self.repo.collections[name] = coll
        log.info("[collection] created name=%s source=%s vectors=%d", name, source, coll.vector_count())
        return coll

    def get(self, name: str) -> CollectionRecord:
        with self.repo.guard:
            coll = self.repo.collections.get(name)
        if coll is None:
            raise NotFoundError(f"Collection {name}")
        return coll

    def list(self) -> list[CollectionRecord]:
        with self.repo.guard:
            return sorted(self.repo.collections.values(), key=lambda c: c.created_at)

    def delete(self, name: str) -> None:
        with self.repo.guard:
            if self.repo.collections.pop(name, None) is None:
                raise NotFoundError(f"Collection {name}")

    @staticmethod
    def to_wire(coll: CollectionRecord) -> W.CollectionModel:
        count = coll.vector_count()
        return W.CollectionModel(
            name=coll.name,
            size=count * coll.dimension * 4,
            status=coll.status,
            dimension=coll.dimension,
            vector_count=count,
            environment=coll.environment,
        )
