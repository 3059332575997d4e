from __future__ import annotations

import json
from typing import Any

from conifer.wire import data as WD
from conifer.wire import inference as WI

from conifer_local.domain.errors import BadRequestError
from conifer_local.domain.models import IndexRecord, SparseVec, StoredVector
from conifer_local.services.inference import InferenceService
from conifer_local.services.vectors import VectorService


def parse_ndjson(raw: bytes) -> list[dict[str, Any]]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BadRequestError("body is not valid UTF-8") from exc
    records = []
    for n, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            rec = json.loads(line)
        except ValueError as exc:
            raise BadRequestError(f"line {n} is not valid JSON") from exc
        if not isinstance(rec, dict):
            raise BadRequestError(f"line {n} must be a JSON object")
        records.append(rec)
    return records


class RecordService:
    """Text records on indexes with integrated embedding."""

    def __init__(self, vectors: VectorService, inference: InferenceService):
        self.vectors = vectors
        self.inference = inference

    def _embed(self, idx: IndexRecord, texts: list[str], params: dict[str, Any]):
        if idx.embed is None:
            raise BadRequestError(f"Index {idx.name} is not configured for integrated inference")
        if idx.vector_type == "dense":
            params = {**params, "dimension": idx.dimension}
        return self.inference.embed_texts(idx.embed["model"], texts, params)

    @staticmethod
    def _as_vector(e: WI.EmbeddingModel) -> tuple[list[float] | None, SparseVec | None]:
        if e.vector_type == "sparse":
            return None, SparseVec(indices=e.sparse_indices or [], values=e.sparse_values or [])
        return e.values, None

    def upsert(self, idx: IndexRecord, namespace: str, records: list[dict[str, Any]]) -> int:
        if idx.embed is None:
            raise BadRequestError(f"Index {idx.name} is not configured for integrated inference")
        if not records:
            raise BadRequestError("No records provided")
        text_field = idx.embed["field_map"]["text"]
        ids, texts = [], []
        for rec in records:
            rid = rec.get("_id", rec.get("id"))
            if not rid:
                raise BadRequestError("every record must have an '_id' or 'id' field")
            if not isinstance(rec.get(text_field), str):
                raise BadRequestError(f"record {rid} is missing field {text_field!r}")
            ids.append(str(rid))
            texts.append(rec[text_field])
        params = {"input_type": "passage", **idx.embed.get("write_parameters", {})}
        embeddings, _ = self._embed(idx, texts, params)
        vectors = []
        for rid, rec, e in zip(ids, records, embeddings):
            values, sparse = self._as_vector(e)
            fields = {k: v for k, v in rec.items() if k not in ("_id", "id")}
            vectors.append(StoredVector(id=rid, values=values, sparse=sparse, metadata=fields))
        return self.vectors.upsert(idx, namespace, vectors)

    def search(self, idx: IndexRecord, namespace: str, req: WD.SearchRecordsRequest) -> WD.SearchRecordsResponse:
        q = req.query
        vector, sparse, embed_tokens = None, None, None
        query_text = (q.inputs or {}).get("text")
        if query_text is not None:
            params = {"input_type": "query", **(idx.embed or {}).get("read_parameters", {})}
            embeddings, embed_tokens = self._embed(idx, [query_text], params)
            vector, sparse = self._as_vector(embeddings[0])
        elif q.vector is not None:
            vector = q.vector.values
            if q.vector.sparse_indices:
                sparse = SparseVec(indices=q.vector.sparse_indices, values=q.vector.sparse_values or [])
        elif not q.id:
            raise BadRequestError("query must provide inputs, vector or id")

        matches = self.vectors.query(idx, namespace, q.top_k, vector=vector, sparse=sparse,
                                     vector_id=q.id, flt=q.filter)
        hits = [
            WD.HitModel(id=v.id, score=score, fields=self._select(v.metadata or {}, req.fields))
            for v, score in matches
        ]
        usage = WD.SearchUsage(read_units=1, embed_total_tokens=embed_tokens)
        if req.rerank is not None and hits:
            hits, usage.rerank_units = self._rerank(req.rerank, query_text, hits, matches)
        return WD.SearchRecordsResponse(result=WD.SearchResult(hits=hits), usage=usage)

    @staticmethod
    def _select(fields: dict[str, Any], wanted: list[str] | None) -> dict[str, Any]:
        if wanted is None:
            return dict(fields)
        return {k: fields[k] for k in wanted if k in fields}

    def _rerank(self, rr: WD.SearchRerank, query_text: str | None, hits, matches):
        query = rr.query or query_text
        if not query:
            raise BadRequestError("rerank.query is required when searching without text inputs")
        docs = [v.metadata or {} for v, _ in matches]
        result = self.inference.rerank(WI.RerankRequest(
            model=rr.model, query=query, documents=docs, rank_fields=rr.rank_fields,
            top_n=rr.top_n, return_documents=False, parameters=rr.parameters,
        ))
        reranked = [hits[d.index].model_copy(update={"score": d.score}) for d in result.data]
        return reranked, result.usage.rerank_units
