from __future__ import annotations

import logging

from conifer.wire import control as W

from conifer_local.domain.errors import BadRequestError, NotFoundError
from conifer_local.domain.models import (
    BackupRecord, IndexRecord, RestoreJobRecord, UtcNow, copy_namespaces, iso,
)
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.indexes import IndexService
from conifer_local.services.pagination import paginate
from conifer_local.services.validation import ensure_resource_name

log = logging.getLogger("conifer_local")


class BackupService:
    """Backups of serverless indexes and the restore jobs created from them."""

    def __init__(self, repo: InMemoryRepo, indexes: IndexService):
        self.repo = repo
        self.indexes = indexes

    # ---- Backups ----
    def create(self, index_name: str, name: str | None, description: str | None) -> BackupRecord:
        idx = self.repo.get_index(index_name)
        if idx.kind != "serverless":
            raise BadRequestError("Backups can only be created from serverless indexes")
        lock = self.repo.get_lock(idx.name)
        lock.acquire_read()
        try:
            namespaces = copy_namespaces(idx.namespaces)
        finally:
            lock.release_read()
        backup = BackupRecord(
            source_index_name=idx.name,
            source_index_id=idx.id,
            name=name,
            description=description,
            cloud=idx.spec.get("cloud", ""),
            region=idx.spec.get("region", ""),
            dimension=idx.dimension,
            metric=idx.metric,
            vector_type=idx.vector_type,
            tags=idx.tags,
            schema_=idx.spec.get("schema"),
            namespaces=namespaces,
        )
        with self.repo.guard:
            self.repo.backups[backup.backup_id] = backup
        log.info("[backup] created id=%s index=%s records=%d", backup.backup_id, idx.name, backup.record_count())
        return backup

    def get(self, backup_id: str) -> BackupRecord:
        with self.repo.guard:
            backup = self.repo.backups.get(backup_id)
        if backup is None:
            raise NotFoundError(f"Backup {backup_id}")
        return backup

    def list(self, index_name: str | None, limit: int | None, token: str | None):
        if index_name is not None:
            self.repo.get_index(index_name)
        with self.repo.guard:
            items = sorted(self.repo.backups.values(), key=lambda b: b.created_at)
        if index_name is not None:
            items = [b for b in items if b.source_index_name == index_name]
        return paginate(items, limit, token)

    def delete(self, backup_id: str) -> None:
        with self.repo.guard:
            if self.repo.backups.pop(backup_id, None) is None:
                raise NotFoundError(f"Backup {backup_id}")

    # ---- Restore ----
    def create_index(self, backup_id: str, name: str, deletion_protection: str | None,
                     tags: dict[str, str] | None) -> tuple[IndexRecord, RestoreJobRecord]:
        backup = self.get(backup_id)
        ensure_resource_name(name)
        spec = {"cloud": backup.cloud, "region": backup.region,
                "read_capacity": {"mode": "OnDemand", "status": {"state": "Ready"}}}
        if backup.schema_:
            spec["schema"] = backup.schema_
        idx = IndexRecord(
            name=name,
            dimension=backup.dimension,
            metric=backup.metric,
            vector_type=backup.vector_type,
            kind="serverless",
            spec=spec,
            deletion_protection=deletion_protection or "disabled",
            tags=tags if tags is not None else backup.tags,
            namespaces=copy_namespaces(backup.namespaces),
        )
        self.indexes.register(idx)
        job = RestoreJobRecord(
            backup_id=backup.backup_id,
            target_index_name=idx.name,
            target_index_id=idx.id,
            completed_at=UtcNow(),
        )
        with self.repo.guard:
            self.repo.restore_jobs[job.restore_job_id] = job
        log.info("[restore] backup=%s -> index=%s job=%s", backup_id, name, job.restore_job_id)
        return idx, job

    def get_restore_job(self, job_id: str) -> RestoreJobRecord:
        with self.repo.guard:
            job = self.repo.restore_jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Restore job {job_id}")
        return job

    def list_restore_jobs(self, limit: int | None, token: str | None):
        with self.repo.guard:
            items = sorted(self.repo.restore_jobs.values(), key=lambda j: j.created_at)
        return paginate(items, limit, token)

    # ---- WIRE ----
    @staticmethod
    def to_wire(b: BackupRecord) -> W.BackupModel:
        count = b.record_count()
        return W.BackupModel(
            backup_id=b.backup_id,
            source_index_name=b.source_index_name,
            source_index_id=b.source_index_id,
            name=b.name,
            description=b.description,
            status=b.status,
            cloud=b.cloud,
            region=b.region,
            dimension=b.dimension,
            metric=b.metric,
            record_count=count,
            namespace_count=len(b.namespaces),
            size_bytes=count * (b.dimension or 0) * 4,
            tags=b.tags,
            created_at=iso(b.created_at),
            schema=W.MetadataSchemaModel.model_validate(b.schema_) if b.schema_ else None,
        )

    @staticmethod
    def job_to_wire(j: RestoreJobRecord) -> W.RestoreJobModel:
        return W.RestoreJobModel(
            restore_job_id=j.restore_job_id,
            backup_id=j.backup_id,
            target_index_name=j.target_index_name,
            target_index_id=j.target_index_id,
            status=j.status,
            created_at=iso(j.created_at),
            completed_at=iso(j.completed_at),
            percent_complete=j.percent_complete,
        )
