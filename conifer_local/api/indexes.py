from fastapi import APIRouter, Depends, Query, Response, status

from conifer.wire import control as W

from conifer_local.container import Container, get_container
from conifer_local.services.pagination import paginate_response

router = APIRouter(tags=["indexes"])


@router.post("/indexes", status_code=status.HTTP_201_CREATED, response_model_exclude_none=True)
def create_index(body: W.CreateIndexRequest, c: Container = Depends(get_container)) -> W.IndexModel:
    return c.indexes.to_wire(c.indexes.create(body))


@router.post("/indexes/create-for-model", status_code=status.HTTP_201_CREATED,
             response_model_exclude_none=True)
def create_index_for_model(body: W.CreateIndexForModelRequest,
                           c: Container = Depends(get_container)) -> W.IndexModel:
    return c.indexes.to_wire(c.indexes.create_for_model(body))


@router.get("/indexes", response_model_exclude_none=True)
def list_indexes(c: Container = Depends(get_container)) -> W.IndexList:
    return W.IndexList(indexes=[c.indexes.to_wire(i) for i in c.indexes.list()])


@router.get("/indexes/{name}", response_model_exclude_none=True)
def describe_index(name: str, c: Container = Depends(get_container)) -> W.IndexModel:
    return c.indexes.to_wire(c.indexes.get(name))


@router.patch("/indexes/{name}", response_model_exclude_none=True)
def configure_index(name: str, body: W.ConfigureIndexRequest,
                    c: Container = Depends(get_container)) -> W.IndexModel:
    return c.indexes.to_wire(c.indexes.configure(name, body))


@router.delete("/indexes/{name}", status_code=status.HTTP_202_ACCEPTED)
def delete_index(name: str, c: Container = Depends(get_container)) -> Response:
    c.indexes.delete(name)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.post("/indexes/{name}/backups", status_code=status.HTTP_201_CREATED,
             response_model_exclude_none=True)
def create_backup(name: str, body: W.CreateBackupRequest,
                  c: Container = Depends(get_container)) -> W.BackupModel:
    return c.backups.to_wire(c.backups.create(name, body.name, body.description))


@router.get("/indexes/{name}/backups", response_model_exclude_none=True)
def list_index_backups(
    name: str,
    limit: int | None = Query(default=None),
    pagination_token: str | None = Query(default=None, alias="paginationToken"),
    c: Container = Depends(get_container),
) -> W.BackupList:
    page, nxt = c.backups.list(name, limit, pagination_token)
    return W.BackupList(data=[c.backups.to_wire(b) for b in page], pagination=paginate_response(nxt))
