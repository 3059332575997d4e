from __future__ import annotations

from typing import Any

from conifer.wire import inference as WI

from conifer_local.domain.errors import BadRequestError
from conifer_local.repo.indices.metrics import cosine
from conifer_local.services.embeddings import (
    MODELS, StubEmbeddingProvider, embed_dimension, get_model,
)

RERANK_DIM = 384


class InferenceService:
    def __init__(self, embedder: StubEmbeddingProvider):
        self.embedder = embedder

    def embed(self, req: WI.EmbedRequest) -> WI.EmbeddingsList:
        model = get_model(req.model, "embed")
        texts = [i.text for i in req.inputs]
        if not texts:
            raise BadRequestError("inputs must contain at least one value")
        if len(texts) > model["max_batch_size"]:
            raise BadRequestError(f"at most {model['max_batch_size']} inputs are allowed for {req.model}")
        params = req.parameters or {}
        if model["vector_type"] == "dense":
            dim = embed_dimension(model, params)
            data = [WI.EmbeddingModel(vector_type="dense", values=v)
                    for v in self.embedder.embed(texts, dim)]
        else:
            return_tokens = bool(params.get("return_tokens", False))
            data = [
                WI.EmbeddingModel(vector_type="sparse", sparse_indices=idx, sparse_values=vals,
                                  sparse_tokens=toks if return_tokens else None)
                for idx, vals, toks in self.embedder.embed_sparse(texts)
            ]
        return WI.EmbeddingsList(
            model=req.model,
            vector_type=model["vector_type"],
            data=data,
            usage=WI.EmbedUsage(total_tokens=self.embedder.count_tokens(texts)),
        )

    def embed_texts(self, model_name: str, texts: list[str], parameters: dict[str, Any] | None = None):
        """Embeddings as plain lists, used by integrated indexes."""
        res = self.embed(WI.EmbedRequest(
            model=model_name, inputs=[WI.EmbedInput(text=t) for t in texts], parameters=parameters,
        ))
        return res.data, res.usage.total_tokens or 0

    def rerank(self, req: WI.RerankRequest) -> WI.RerankResult:
        get_model(req.model, "rerank")
        if not req.documents:
            raise BadRequestError("documents must contain at least one value")
        rank_fields = req.rank_fields or ["text"]
        texts = []
        for i, doc in enumerate(req.documents):
            parts = []
            for f in rank_fields:
                if not isinstance(doc.get(f), str):
                    raise BadRequestError(f"document {i} is missing rank field {f!r}")
                parts.append(doc[f])
            texts.append(" ".join(parts))
        q = self.embedder.embed([req.query], RERANK_DIM)[0]
        scored = [
            (i, (cosine(q, d) + 1.0) / 2.0)
            for i, d in enumerate(self.embedder.embed(texts, RERANK_DIM))
        ]
        scored.sort(key=lambda t: t[1], reverse=True)
        top_n = req.top_n or len(scored)
        return_documents = True if req.return_documents is None else req.return_documents
        return WI.RerankResult(
            model=req.model,
            data=[
                WI.RankedDocumentModel(index=i, score=s,
                                       document=req.documents[i] if return_documents else None)
                for i, s in scored[:top_n]
            ],
            usage=WI.RerankUsage(rerank_units=1),
        )

    @staticmethod
    def list_models(type_: str | None, vector_type: str | None) -> WI.ModelInfoList:
        models = [
            m for m in MODELS.values()
            if (type_ is None or m["type"] == type_)
            and (vector_type is None or m.get("vector_type") == vector_type)
        ]
        return WI.ModelInfoList(models=[WI.ModelInfo.model_validate(m) for m in models])

    @staticmethod
    def describe_model(name: str) -> WI.ModelInfo:
        return WI.ModelInfo.model_validate(get_model(name))
