from __future__ import annotations
from threading import RLock, Condition
from typing import Dict

from conifer_local.domain.errors import NotFoundError
from conifer_local.domain.models import (
    BackupRecord, CollectionRecord, ImportRecord, IndexRecord, RestoreJobRecord,
)


class RWLock:
    def __init__(self):
        self._lock = RLock()
        self._readers = 0
        self._cond = Condition(self._lock)

    def acquire_read(self):
        with self._lock:
            self._readers += 1

    def release_read(self):
        with self._lock:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        self._lock.acquire()
        while self._readers > 0:
            self._cond.wait()

    def release_write(self):
        self._lock.release()


def _strip_scheme(host: str) -> str:
    return host.split("://", 1)[-1]


class InMemoryRepo:
    """Process-local state of one emulated project.

    ``guard`` protects the top-level maps; each index additionally has an
    ``RWLock`` guarding its namespaces.
    """

    def __init__(self):
        self.guard = RLock()
        self.indexes: Dict[str, IndexRecord] = {}
        self.collections: Dict[str, CollectionRecord] = {}
        self.backups: Dict[str, BackupRecord] = {}
        self.restore_jobs: Dict[str, RestoreJobRecord] = {}
        self.imports: Dict[str, Dict[str, ImportRecord]] = {}
        self.locks: Dict[str, RWLock] = {}

    def get_lock(self, index_name: str) -> RWLock:
        with self.guard:
            if index_name not in self.locks:
                self.locks[index_name] = RWLock()
            return self.locks[index_name]

    def get_index(self, name: str) -> IndexRecord:
        with self.guard:
            idx = self.indexes.get(name)
        if idx is None:
            raise NotFoundError(f"Index {name}")
        return idx

    def index_by_host(self, host: str) -> IndexRecord:
        want = _strip_scheme(host)
        with self.guard:
            for idx in self.indexes.values():
                if _strip_scheme(idx.host) == want:
                    return idx
        raise NotFoundError(f"Index with host {host}")

    def put_index(self, idx: IndexRecord) -> None:
        with self.guard:
            self.indexes[idx.name] = idx
            self.imports.setdefault(idx.name, {})
            self.get_lock(idx.name)

    def drop_index(self, name: str) -> IndexRecord:
        with self.guard:
            idx = self.indexes.pop(name, None)
            self.imports.pop(name, None)
            self.locks.pop(name, None)
        if idx is None:
            raise NotFoundError(f"Index {name}")
        return idx
