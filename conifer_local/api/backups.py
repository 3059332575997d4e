from fastapi import APIRouter, Depends, Query, Response, status

from conifer.wire import control as W

from conifer_local.container import Container, get_container
from conifer_local.services.pagination import paginate_response

router = APIRouter(tags=["backups"])


@router.get("/backups", response_model_exclude_none=True)
def list_backups(
    limit: int | None = Query(default=None),
    pagination_token: str | None = Query(default=None, alias="paginationToken"),
    c: Container = Depends(get_container),
) -> W.BackupList:
    page, nxt = c.backups.list(None, limit, pagination_token)
    return W.BackupList(data=[c.backups.to_wire(b) for b in page], pagination=paginate_response(nxt))


@router.get("/backups/{backup_id}", response_model_exclude_none=True)
def describe_backup(backup_id: str, c: Container = Depends(get_container)) -> W.BackupModel:
    return c.backups.to_wire(c.backups.get(backup_id))


@router.delete("/backups/{backup_id}", status_code=status.HTTP_202_ACCEPTED)
def delete_backup(backup_id: str, c: Container = Depends(get_container)) -> Response:
    c.backups.delete(backup_id)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.post("/backups/{backup_id}/create-index", status_code=status.HTTP_202_ACCEPTED)
def create_index_from_backup(backup_id: str, body: W.CreateIndexFromBackupRequest,
                             c: Container = Depends(get_container)) -> W.CreateIndexFromBackupResponse:
    idx, job = c.backups.create_index(backup_id, body.name, body.deletion_protection, body.tags)
    return W.CreateIndexFromBackupResponse(index_id=idx.id, restore_job_id=job.restore_job_id)


@router.get("/restore-jobs", response_model_exclude_none=True)
def list_restore_jobs(
    limit: int | None = Query(default=None),
    pagination_token: str | None = Query(default=None, alias="paginationToken"),
    c: Container = Depends(get_container),
) -> W.RestoreJobList:
    page, nxt = c.backups.list_restore_jobs(limit, pagination_token)
    return W.RestoreJobList(data=[c.backups.job_to_wire(j) for j in page], pagination=paginate_response(nxt))


@router.get("/restore-jobs/{job_id}", response_model_exclude_none=True)
def describe_restore_job(job_id: str, c: Container = Depends(get_container)) -> W.RestoreJobModel:
    return c.backups.job_to_wire(c.backups.get_restore_job(job_id))
