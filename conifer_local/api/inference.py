from fastapi import APIRouter, Depends, Query

from conifer.wire import inference as WI

from conifer_local.container import Container, get_container

router = APIRouter(tags=["inference"])


@router.post("/embed", response_model_exclude_none=True)
def embed(body: WI.EmbedRequest, c: Container = Depends(get_container)) -> WI.EmbeddingsList:
    return c.inference.embed(body)


@router.post("/rerank", response_model_exclude_none=True)
def rerank(body: WI.RerankRequest, c: Container = Depends(get_container)) -> WI.RerankResult:
    return c.inference.rerank(body)


@router.get("/models", response_model_exclude_none=True)
def list_models(
    type: str | None = Query(default=None),
    vector_type: str | None = Query(default=None),
    c: Container = Depends(get_container),
) -> WI.ModelInfoList:
    return c.inference.list_models(type, vector_type)


@router.get("/models/{model}", response_model_exclude_none=True)
def describe_model(model: str, c: Container = Depends(get_container)) -> WI.ModelInfo:
    return c.inference.describe_model(model)
