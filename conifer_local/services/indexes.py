# conifer_local/services/indexes.py
from __future__ import annotations

import logging
from typing import Any, Protocol

from conifer.wire import control as W

from conifer_local.config import Settings
from conifer_local.domain.errors import BadRequestError, ConflictError, ForbiddenError
from conifer_local.domain.models import IndexRecord, Namespaces, copy_namespaces
from conifer_local.repo.memory import InMemoryRepo
from conifer_local.services.embeddings import embed_dimension, get_model
from conifer_local.services.validation import ensure_dimension, ensure_resource_name

log = logging.getLogger("conifer_local")


class DataPlane(Protocol):
    def attach(self, idx: IndexRecord) -> str: ...
    def detach(self, name: str) -> None: ...


def _read_capacity(rc: W.ReadCapacityModel | None) -> dict[str, Any]:
    rc = rc or W.ReadCapacityModel()
    out = rc.model_dump(exclude_none=True, exclude={"status"})
    if rc.mode == "Dedicated":
        if rc.dedicated is None:
            raise BadRequestError("Dedicated read capacity requires a dedicated configuration")
        manual = rc.dedicated.manual or W.ManualScaling()
        out["status"] = {"state": "Ready", "current_replicas": manual.replicas,
                         "current_shards": manual.shards}
    else:
        out["status"] = {"state": "Ready"}
    return out


class IndexService:
    def __init__(self, repo: InMemoryRepo, data_plane: DataPlane, settings: Settings):
        self.repo = repo
        self.data_plane = data_plane
        self.settings = settings

    # ---- CREATE ----
    def create(self, body: W.CreateIndexRequest) -> IndexRecord:
        ensure_resource_name(body.name)
        vector_type = body.vector_type or "dense"
        if vector_type == "sparse":
            if body.dimension is not None:
                raise BadRequestError("Sparse indexes must not specify a dimension")
            if body.metric not in (None, "dotproduct"):
                raise BadRequestError("Sparse indexes only support the dotproduct metric")
            metric = "dotproduct"
        elif vector_type == "dense":
            ensure_dimension(body.dimension)
            metric = body.metric or "cosine"
        else:
            raise BadRequestError(f"Unsupported vector_type {vector_type}")
        if metric not in ("cosine", "dotproduct", "euclidean"):
            raise BadRequestError(f"Unsupported metric {metric}")

        variants = [k for k in ("serverless", "pod", "byoc") if getattr(body.spec, k) is not None]
        if len(variants) != 1:
            raise BadRequestError("Exactly one of spec.serverless or spec.pod must be provided")
        kind = variants[0]
        namespaces: Namespaces = {}
        if kind == "pod":
            pod = body.spec.pod
            if vector_type != "dense":
                raise BadRequestError("Pod indexes only support dense vectors")
            replicas, shards = max(1, pod.replicas or 1), max(1, pod.shards or 1)
            spec = pod.model_dump(exclude_none=True)
            spec.update(replicas=replicas, shards=shards, pods=replicas * shards)
            if pod.source_collection:
                namespaces = self._from_collection(pod.source_collection, body.dimension)
        elif kind == "serverless":
            spec = body.spec.serverless.model_dump(by_alias=True, exclude_none=True)
            spec["read_capacity"] = _read_capacity(body.spec.serverless.read_capacity)
        else:
            raise BadRequestError("BYOC indexes are not supported by the local emulator")

        idx = IndexRecord(
            name=body.name,
            dimension=body.dimension,
            metric=metric,
            vector_type=vector_type,
            kind=kind,
            spec=spec,
            deletion_protection=body.deletion_protection or "disabled",
            tags=body.tags,
            namespaces=namespaces,
        )
        return self.register(idx)

    def create_for_model(self, body: W.CreateIndexForModelRequest) -> IndexRecord:
        ensure_resource_name(body.name)
        model = get_model(body.embed.model, "embed")
        if "text" not in body.embed.field_map:
            raise BadRequestError("embed.field_map must map the 'text' input to a record field")
        vector_type = model["vector_type"]
        if vector_type == "dense":
            dim = body.embed.dimension or model["default_dimension"]
            dim = embed_dimension(model, {"dimension": dim})
            metric = body.embed.metric or model["supported_metrics"][0]
        else:
            dim, metric = None, "dotproduct"
        if metric not in model["supported_metrics"]:
            raise BadRequestError(f"Metric {metric} is not supported by model {model['model']}")
        spec = {"cloud": body.cloud, "region": body.region,
                "read_capacity": _read_capacity(body.read_capacity)}
        if body.schema_ is not None:
            spec["schema"] = body.schema_.model_dump()
        idx = IndexRecord(
            name=body.name,
            dimension=dim,
            metric=metric,
            vector_type=vector_type,
            kind="serverless",
            spec=spec,
            deletion_protection=body.deletion_protection or "disabled",
            tags=body.tags,
            embed={
                "model": model["model"],
                "metric": metric,
                "dimension": dim,
                "vector_type": vector_type,
                "field_map": dict(body.embed.field_map),
                "read_parameters": body.embed.read_parameters or {},
                "write_parameters": body.embed.write_parameters or {},
            },
        )
        return self.register(idx)

    def register(self, idx: IndexRecord) -> IndexRecord:
        """Store a new index and give it a data-plane host."""
        with self.repo.guard:
            if idx.name in self.repo.indexes:
                raise ConflictError(f"Resource {idx.name} already exists")
            self.repo.put_index(idx)
        try:
            idx.host = self.data_plane.attach(idx)
        except Exception:
            self.repo.drop_index(idx.name)
            raise
        log.info("[index] created name=%s kind=%s host=%s", idx.name, idx.kind, idx.host)
        return idx

    def _from_collection(self, name: str, dimension: int | None) -> Namespaces:
        with self.repo.guard:
            coll = self.repo.collections.get(name)
        if coll is None:
            raise BadRequestError(f"Source collection {name} not found")
        if coll.dimension != dimension:
            raise BadRequestError(
                f"Index dimension {dimension} does not match collection dimension {coll.dimension}"
            )
        return copy_namespaces(coll.namespaces)

    # ---- READ ----
    def get(self, name: str) -> IndexRecord:
        return self.repo.get_index(name)

    def list(self) -> list[IndexRecord]:
        with self.repo.guard:
            return sorted(self.repo.indexes.values(), key=lambda i: i.created_at)

    # ---- UPDATE ----
    def configure(self, name: str, body: W.ConfigureIndexRequest) -> IndexRecord:
        """Apply a configure request; nothing changes unless every part is valid."""
        idx = self.get(name)
        lock = self.repo.get_lock(name)
        lock.acquire_write()
        try:
            spec = dict(idx.spec)
            if body.spec is not None and body.spec.pod is not None:
                if idx.kind != "pod":
                    raise BadRequestError("pod_type and replicas can only be configured on pod indexes")
                if body.spec.pod.pod_type is not None:
                    spec["pod_type"] = body.spec.pod.pod_type
                if body.spec.pod.replicas is not None:
                    if body.spec.pod.replicas < 1:
                        raise BadRequestError("replicas must be at least 1")
                    spec["replicas"] = body.spec.pod.replicas
                    spec["pods"] = body.spec.pod.replicas * spec.get("shards", 1)
            if body.spec is not None and body.spec.serverless is not None:
                if idx.kind != "serverless":
                    raise BadRequestError("read_capacity can only be configured on serverless indexes")
                spec["read_capacity"] = _read_capacity(body.spec.serverless.read_capacity)
            protection = idx.deletion_protection
            if body.deletion_protection is not None:
                if body.deletion_protection not in ("enabled", "disabled"):
                    raise BadRequestError("deletion_protection must be 'enabled' or 'disabled'")
                protection = body.deletion_protection
            tags = idx.tags
            if body.tags is not None:
                tags = dict(idx.tags or {})
                for k, v in body.tags.items():
                    # an empty value removes the tag
                    if v == "":
                        tags.pop(k, None)
                    else:
                        tags[k] = v
            embed = idx.embed
            if body.embed is not None:
                embed = self._configured_embed(idx, body.embed)

            idx.spec = spec
            idx.deletion_protection = protection
            idx.tags = tags
            idx.embed = embed
        finally:
            lock.release_write()
        return idx

    def _configured_embed(self, idx: IndexRecord, embed: W.ConfigureEmbed) -> dict[str, Any]:
        if idx.embed is None:
            if not embed.model:
                raise BadRequestError("embed.model is required to convert an index to integrated inference")
            model = get_model(embed.model, "embed")
            if model["vector_type"] != idx.vector_type or model.get("default_dimension") != idx.dimension:
                raise BadRequestError(f"Model {embed.model} is not compatible with index {idx.name}")
            out = {"model": model["model"], "metric": idx.metric, "dimension": idx.dimension,
                   "vector_type": idx.vector_type, "field_map": {},
                   "read_parameters": {}, "write_parameters": {}}
        elif embed.model and embed.model != idx.embed["model"]:
            raise BadRequestError("The embedding model of an index cannot be changed")
        else:
            out = dict(idx.embed)
        for key in ("field_map", "read_parameters", "write_parameters"):
            value = getattr(embed, key)
            if value is not None:
                out[key] = dict(value)
        return out

    # ---- DELETE ----
    def delete(self, name: str) -> None:
        idx = self.get(name)
        if idx.deletion_protection == "enabled":
            raise ForbiddenError(
                f"Deletion protection is enabled for index {name}. "
                "Disable deletion protection before retrying"
            )
        self.data_plane.detach(name)
        self.repo.drop_index(name)
        log.info("[index] deleted name=%s", name)

    # ---- WIRE ----
    @staticmethod
    def to_wire(idx: IndexRecord) -> W.IndexModel:
        return W.IndexModel(
            name=idx.name,
            dimension=idx.dimension,
            metric=idx.metric,
            host=idx.host,
            spec=W.IndexSpecModel.model_validate({idx.kind: idx.spec}),
            status=W.IndexStatusModel(ready=idx.state == "Ready", state=idx.state),
            deletion_protection=idx.deletion_protection,
            tags=idx.tags,
            embed=W.IndexEmbedModel(**idx.embed) if idx.embed else None,
            vector_type=idx.vector_type,
        )
