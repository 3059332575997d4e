from fastapi import APIRouter, Depends, Response, status

from conifer.wire import control as W

from conifer_local.container import Container, get_container

router = APIRouter(prefix="/collections", tags=["collections"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model_exclude_none=True)
def create_collection(body: W.CreateCollectionRequest,
                      c: Container = Depends(get_container)) -> W.CollectionModel:
    return c.collections.to_wire(c.collections.create(body.name, body.source))


@router.get("", response_model_exclude_none=True)
def list_collections(c: Container = Depends(get_container)) -> W.CollectionList:
    return W.CollectionList(collections=[c.collections.to_wire(x) for x in c.collections.list()])


@router.get("/{name}", response_model_exclude_none=True)
def describe_collection(name: str, c: Container = Depends(get_container)) -> W.CollectionModel:
    return c.collections.to_wire(c.collections.get(name))


@router.delete("/{name}", status_code=status.HTTP_202_ACCEPTED)
def delete_collection(name: str, c: Container = Depends(get_container)) -> Response:
    c.collections.delete(name)
    return Response(status_code=status.HTTP_202_ACCEPTED)
