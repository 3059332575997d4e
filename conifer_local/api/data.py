# conifer_local/api/data.py
"""REST half of an index's data plane, addressed by the ``Host`` header."""
from fastapi import APIRouter, Depends, Query, Request, Response, status

from conifer.wire import control as W
from conifer.wire import data as WD

from conifer_local.container import Container, get_container, get_target_index
from conifer_local.domain.models import IndexRecord
from conifer_local.services.pagination import paginate_response
from conifer_local.services.records import parse_ndjson

router = APIRouter(tags=["data"])


def _schema(raw: dict | None) -> W.MetadataSchemaModel | None:
    return W.MetadataSchemaModel.model_validate(raw) if raw else None


# ---- Records ----
@router.post("/records/namespaces/{namespace}/upsert", status_code=status.HTTP_201_CREATED)
async def upsert_records(
    namespace: str,
    request: Request,
    idx: IndexRecord = Depends(get_target_index),
    c: Container = Depends(get_container),
) -> Response:
    records = parse_ndjson(await request.body())
    c.records.upsert(idx, namespace, records)
    return Response(status_code=status.HTTP_201_CREATED)


@router.post("/records/namespaces/{namespace}/search", response_model_exclude_none=True)
def search_records(
    namespace: str,
    body: WD.SearchRecordsRequest,
    idx: IndexRecord = Depends(get_target_index),
    c: Container = Depends(get_container),
) -> WD.SearchRecordsResponse:
    return c.records.search(idx, namespace, body)


# ---- Bulk imports ----
@router.post("/bulk/imports")
def start_import(body: WD.StartImportRequest, idx: IndexRecord = Depends(get_target_index),
                 c: Container = Depends(get_container)) -> WD.StartImportResponse:
    return WD.StartImportResponse(id=c.imports.start(idx, body).id)


@router.get("/bulk/imports", response_model_exclude_none=True)
def list_imports(
    limit: int | None = Query(default=None),
    pagination_token: str | None = Query(default=None, alias="paginationToken"),
    idx: IndexRecord = Depends(get_target_index),
    c: Container = Depends(get_container),
) -> WD.ListImportsResponse:
    page, nxt = c.imports.list(idx, limit, pagination_token)
    return WD.ListImportsResponse(data=[c.imports.to_wire(r) for r in page], pagination=paginate_response(nxt))


@router.get("/bulk/imports/{import_id}", response_model_exclude_none=True)
def describe_import(import_id: str, idx: IndexRecord = Depends(get_target_index),
                    c: Container = Depends(get_container)) -> WD.ImportModel:
    return c.imports.to_wire(c.imports.get(idx, import_id))


@router.delete("/bulk/imports/{import_id}")
def cancel_import(import_id: str, idx: IndexRecord = Depends(get_target_index),
                  c: Container = Depends(get_container)) -> dict:
    c.imports.cancel(idx, import_id)
    return {}


# ---- Namespaces ----
@router.post("/namespaces", status_code=status.HTTP_201_CREATED, response_model_exclude_none=True)
def create_namespace(body: WD.CreateNamespaceRequest, idx: IndexRecord = Depends(get_target_index),
                     c: Container = Depends(get_container)) -> WD.NamespaceDescription:
    schema = body.schema_.model_dump() if body.schema_ is not None else None
    c.vectors.create_namespace(idx, body.name, schema)
    return WD.NamespaceDescription(name=body.name, record_count=0, schema=_schema(schema))


@router.get("/namespaces", response_model_exclude_none=True)
def list_namespaces(
    prefix: str | None = Query(default=None),
    limit: int | None = Query(default=None),
    pagination_token: str | None = Query(default=None, alias="paginationToken"),
    idx: IndexRecord = Depends(get_target_index),
    c: Container = Depends(get_container),
) -> WD.ListNamespacesResponse:
    page, nxt, total = c.vectors.list_namespaces(idx, prefix, limit, pagination_token)
    return WD.ListNamespacesResponse(
        namespaces=[
            WD.NamespaceDescription(name=name, record_count=n, schema=_schema(idx.namespace_schemas.get(name)))
            for name, n in page
        ],
        pagination=paginate_response(nxt),
        total_count=total,
    )


@router.get("/namespaces/{namespace}", response_model_exclude_none=True)
def describe_namespace(namespace: str, idx: IndexRecord = Depends(get_target_index),
                       c: Container = Depends(get_container)) -> WD.NamespaceDescription:
    count, schema = c.vectors.describe_namespace(idx, namespace)
    return WD.NamespaceDescription(name=namespace, record_count=count, schema=_schema(schema))


@router.delete("/namespaces/{namespace}", status_code=status.HTTP_202_ACCEPTED)
def delete_namespace(namespace: str, idx: IndexRecord = Depends(get_target_index),
                     c: Container = Depends(get_container)) -> Response:
    c.vectors.delete_namespace(idx, namespace)
    return Response(status_code=status.HTTP_202_ACCEPTED)
