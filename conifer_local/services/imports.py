from __future__ import annotations

import logging

from conifer.wire import data as WD

from conifer_local.domain.errors import BadRequestError, NotFoundError
from conifer_local.domain.models import ImportRecord, IndexRecord, UtcNow, iso
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.pagination import paginate

log = logging.getLogger("conifer_local")

_SCHEMES = ("s3://", "gs://", "azure://")
_FINISHED = ("Completed", "Failed", "Cancelled")


class ImportService:
    """Bulk-import bookkeeping.

    The emulator cannot reach object storage, so imports stay InProgress
    until cancelled.
    """

    def __init__(self, repo: InMemoryRepo):
        self.repo = repo

    def _imports(self, idx: IndexRecord) -> dict[str, ImportRecord]:
        with self.repo.guard:
            return self.repo.imports.setdefault(idx.name, {})

    def start(self, idx: IndexRecord, body: WD.StartImportRequest) -> ImportRecord:
        if idx.kind != "serverless":
            raise BadRequestError("Bulk import is only supported on serverless indexes")
        if not body.uri.startswith(_SCHEMES):
            raise BadRequestError(f"uri must start with one of {', '.join(_SCHEMES)}")
        on_error = body.error_mode.on_error if body.error_mode and body.error_mode.on_error else "continue"
        if on_error not in ("abort", "continue"):
            raise BadRequestError("error_mode.on_error must be 'abort' or 'continue'")
        imports = self._imports(idx)
        with self.repo.guard:
            rec = ImportRecord(id=str(len(imports) + 101), uri=body.uri,
                               integration_id=body.integration_id, error_mode=on_error)
            imports[rec.id] = rec
        log.info("[import] index=%s id=%s uri=%s", idx.name, rec.id, rec.uri)
        return rec

    def get(self, idx: IndexRecord, import_id: str) -> ImportRecord:
        rec = self._imports(idx).get(import_id)
        if rec is None:
            raise NotFoundError(f"Import {import_id}")
        return rec

    def list(self, idx: IndexRecord, limit: int | None, token: str | None):
        items = sorted(self._imports(idx).values(), key=lambda r: int(r.id))
        return paginate(items, limit, token, default_limit=100, max_limit=100)

    def cancel(self, idx: IndexRecord, import_id: str) -> None:
        rec = self.get(idx, import_id)
        if rec.status in _FINISHED:
            raise BadRequestError(f"Import {import_id} has already finished with status {rec.status}")
        rec.status = "Cancelled"
        rec.finished_at = UtcNow()

    @staticmethod
    def to_wire(rec: ImportRecord) -> WD.ImportModel:
        return WD.ImportModel(
            id=rec.id,
            uri=rec.uri,
            status=rec.status,
            created_at=iso(rec.created_at),
            finished_at=iso(rec.finished_at),
            percent_complete=rec.percent_complete,
            records_imported=rec.records_imported,
            error=rec.error,
        )
