# conifer_local/container.py
from __future__ import annotations
import logging

from fastapi import Depends, Header, Request

from conifer_local.config import Settings
from conifer_local.domain.errors import UnauthorizedError
from conifer_local.domain.models import IndexRecord
from conifer_local.grpc_server import GrpcDataPlane, HostOnlyDataPlane
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.backups import BackupService
from conifer_local.services.collections import CollectionService
from conifer_local.services.embeddings import StubEmbeddingProvider
from conifer_local.services.imports import ImportService
from conifer_local.services.indexes import IndexService
from conifer_local.services.inference import InferenceService
from conifer_local.services.records import RecordService
from conifer_local.services.vectors import VectorService

log = logging.getLogger("conifer_local")


class Container:
    """Everything one emulated project needs, built once per app."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.repo = InMemoryRepo()
        self.embedder = StubEmbeddingProvider()
        self.vectors = VectorService(self.repo, settings)
        if settings.grpc_enabled:
            self.data_plane = GrpcDataPlane(self.repo, self.vectors, settings)
        else:
            self.data_plane = HostOnlyDataPlane(settings)
        self.indexes = IndexService(self.repo, self.data_plane, settings)
        self.collections = CollectionService(self.repo)
        self.backups = BackupService(self.repo, self.indexes)
        self.inference = InferenceService(self.embedder)
        self.records = RecordService(self.vectors, self.inference)
        self.imports = ImportService(self.repo)
        log.info("[container] project=%s grpc_enabled=%s", settings.project_id, settings.grpc_enabled)

    def shutdown(self) -> None:
        self.data_plane.stop_all()


def get_container(request: Request) -> Container:
    return request.app.state.container


def require_api_key(
    request: Request,
    api_key: str | None = Header(default=None, alias="Api-Key"),
) -> None:
    expected = get_container(request).settings.api_key
    if expected and api_key != expected:
        raise UnauthorizedError("Invalid API key")


def get_target_index(request: Request, c: Container = Depends(get_container)) -> IndexRecord:
    """The index addressed by the ``Host`` header of a data-plane request."""
    return c.repo.index_by_host(request.headers.get("host", ""))
