# conifer/inference.py
from __future__ import annotations

from . import convert
from . import models as M
from .exceptions import InvalidRequest
from .http import RestClient
from .wire import inference as WI


class InferenceService:
    """Embedding, reranking and model discovery; reached as ``Client.inference``."""

    def __init__(self, rest: RestClient):
        self._rest = rest

    def embed(self, req: M.EmbedRequest) -> M.EmbedResponse:
        if not req.text_inputs:
            raise InvalidRequest("TextInputs must contain at least one value")
        body = WI.EmbedRequest(
            model=req.model,
            inputs=[WI.EmbedInput(text=t) for t in req.text_inputs],
            parameters=req.parameters,
        ).model_dump(exclude_none=True)
        r = self._rest.request("POST", "/embed", json=body, error_prefix="failed to embed")
        return convert.to_embed_response(WI.EmbeddingsList.model_validate(r.json()))

    def rerank(self, req: M.RerankRequest) -> M.RerankResponse:
        if not req.documents:
            raise InvalidRequest("Documents must contain at least one value")
        body = WI.RerankRequest(**req.model_dump()).model_dump(exclude_none=True)
        r = self._rest.request("POST", "/rerank", json=body, error_prefix="failed to rerank")
        return convert.to_rerank_response(WI.RerankResult.model_validate(r.json()))

    def describe_model(self, model: str) -> M.ModelInfo:
        if not model:
            raise InvalidRequest("model name must be provided")
        r = self._rest.request("GET", f"/models/{model}", error_prefix="failed to describe model")
        return convert.to_model_info(WI.ModelInfo.model_validate(r.json()))

    def list_models(self, params: M.ListModelsParams | None = None) -> M.ModelInfoList:
        params = params or M.ListModelsParams()
        r = self._rest.request("GET", "/models", params=params.model_dump(exclude_none=True),
                               error_prefix="failed to list models")
        out = WI.ModelInfoList.model_validate(r.json())
        return M.ModelInfoList(models=[convert.to_model_info(m) for m in out.models or []])
