# conifer/admin.py
"""Organization, project and API key administration.

The admin API authenticates with a service account: the client id and secret
are exchanged for a bearer token once, when the client is built.
"""
from __future__ import annotations
import logging
import uuid
from typing import Mapping

import httpx

from . import convert
from . import models as M
from .config import DEFAULT_RETRIES, DEFAULT_TIMEOUT_S, ClientConfig, load_env
from .exceptions import InvalidRequest
from .headers import build_shared_headers
from .http import RestClient
from .wire import admin as WA

log = logging.getLogger("conifer")

ADMIN_HOST = "https://api.pinecone.io"
AUTH_HOST = "https://login.pinecone.io"


def _uuid(value: str, what: str) -> str:
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError) as exc:
        raise InvalidRequest(f"invalid {what}: {value!r}") from exc


def get_auth_token(rest: RestClient, client_id: str, client_secret: str) -> str:
    body = WA.TokenRequest(client_id=client_id, client_secret=client_secret).model_dump()
    r = rest.request("POST", "/oauth/token", json=body, error_prefix="failed to get auth token")
    return WA.TokenResponse.model_validate(r.json()).access_token


class ProjectAdmin:
    def __init__(self, rest: RestClient):
        self._rest = rest

    def create(self, params: M.CreateProjectParams) -> M.Project:
        if not params.name:
            raise InvalidRequest("project name must be provided")
        body = WA.CreateProjectRequest(**params.model_dump()).model_dump(exclude_none=True)
        r = self._rest.request("POST", "/admin/projects", json=body, expect=(200, 201),
                               error_prefix="failed to create project")
        return convert.to_project(WA.ProjectModel.model_validate(r.json()))

    def update(self, project_id: str, params: M.UpdateProjectParams) -> M.Project:
        pid = _uuid(project_id, "project_id")
        body = WA.UpdateProjectRequest(**params.model_dump()).model_dump(exclude_none=True)
        r = self._rest.request("PATCH", f"/admin/projects/{pid}", json=body,
                               error_prefix="failed to update project")
        return convert.to_project(WA.ProjectModel.model_validate(r.json()))

    def list(self) -> list[M.Project]:
        r = self._rest.request("GET", "/admin/projects", error_prefix="failed to list projects")
        return [convert.to_project(p) for p in WA.ProjectList.model_validate(r.json()).data or []]

    def describe(self, project_id: str) -> M.Project:
        pid = _uuid(project_id, "project_id")
        r = self._rest.request("GET", f"/admin/projects/{pid}", error_prefix="failed to describe project")
        return convert.to_project(WA.ProjectModel.model_validate(r.json()))

    def delete(self, project_id: str) -> None:
        pid = _uuid(project_id, "project_id")
        self._rest.request("DELETE", f"/admin/projects/{pid}", expect=(202,),
                           error_prefix="failed to delete project")


class OrganizationAdmin:
    def __init__(self, rest: RestClient):
        self._rest = rest

    def list(self) -> list[M.Organization]:
        r = self._rest.request("GET", "/admin/organizations", error_prefix="failed to list organizations")
        return [convert.to_organization(o) for o in WA.OrganizationList.model_validate(r.json()).data or []]

    def describe(self, organization_id: str) -> M.Organization:
        if not organization_id:
            raise InvalidRequest("organization_id must be provided")
        r = self._rest.request("GET", f"/admin/organizations/{organization_id}",
                               error_prefix="failed to describe organization")
        return convert.to_organization(WA.OrganizationModel.model_validate(r.json()))

    def update(self, organization_id: str, params: M.UpdateOrganizationParams) -> M.Organization:
        if not organization_id:
            raise InvalidRequest("organization_id must be provided")
        body = WA.UpdateOrganizationRequest(**params.model_dump()).model_dump(exclude_none=True)
        r = self._rest.request("PATCH", f"/admin/organizations/{organization_id}", json=body,
                               error_prefix="failed to update organization")
        return convert.to_organization(WA.OrganizationModel.model_validate(r.json()))

    def delete(self, organization_id: str) -> None:
        if not organization_id:
            raise InvalidRequest("organization_id must be provided")
        self._rest.request("DELETE", f"/admin/organizations/{organization_id}", expect=(200, 202),
                           error_prefix="failed to delete organization")


class ApiKeyAdmin:
    def __init__(self, rest: RestClient):
        self._rest = rest

    def create(self, project_id: str, params: M.CreateApiKeyParams) -> M.ApiKeyWithSecret:
        pid = _uuid(project_id, "project_id")
        if not params.name:
            raise InvalidRequest("api key name must be provided")
        body = WA.CreateAPIKeyRequest(**params.model_dump()).model_dump(exclude_none=True)
        r = self._rest.request("POST", f"/admin/projects/{pid}/api-keys", json=body, expect=(200, 201),
                               error_prefix="failed to create api key")
        return convert.to_api_key_with_secret(WA.APIKeyWithSecret.model_validate(r.json()))

    def update(self, api_key_id: str, params: M.UpdateApiKeyParams) -> M.ApiKey:
        kid = _uuid(api_key_id, "api_key_id")
        body = WA.UpdateAPIKeyRequest(**params.model_dump()).model_dump(exclude_none=True)
        r = self._rest.request("PATCH", f"/admin/api-keys/{kid}", json=body,
                               error_prefix="failed to update api key")
        return convert.to_api_key(WA.APIKeyModel.model_validate(r.json()))

    def list(self, project_id: str) -> list[M.ApiKey]:
        pid = _uuid(project_id, "project_id")
        r = self._rest.request("GET", f"/admin/projects/{pid}/api-keys", error_prefix="failed to list api keys")
        return [convert.to_api_key(k) for k in WA.APIKeyList.model_validate(r.json()).data or []]

    def describe(self, api_key_id: str) -> M.ApiKey:
        kid = _uuid(api_key_id, "api_key_id")
        r = self._rest.request("GET", f"/admin/api-keys/{kid}", error_prefix="failed to describe api key")
        return convert.to_api_key(WA.APIKeyModel.model_validate(r.json()))

    def delete(self, api_key_id: str) -> None:
        kid = _uuid(api_key_id, "api_key_id")
        self._rest.request("DELETE", f"/admin/api-keys/{kid}", expect=(202,),
                           error_prefix="failed to delete api key")


class AdminClient:
    """Entry point to the admin API: ``project``, ``organization`` and ``api_key``.

    ``client_id`` and ``client_secret`` fall back to ``PINECONE_CLIENT_ID``
    and ``PINECONE_CLIENT_SECRET``.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        source_tag: str | None = None,
        http_client: httpx.Client | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        retries: int = DEFAULT_RETRIES,
    ):
        env = load_env()
        client_id = client_id or env.pinecone_client_id
        client_secret = client_secret or env.pinecone_client_secret
        if not client_id:
            raise InvalidRequest(
                "no client_id provided, please pass a client_id for authorization "
                "or set the PINECONE_CLIENT_ID environment variable"
            )
        if not client_secret:
            raise InvalidRequest(
                "no client_secret provided, please pass a client_secret for authorization "
                "or set the PINECONE_CLIENT_SECRET environment variable"
            )
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_s)
        shared = build_shared_headers(ClientConfig(headers=dict(headers or {}), source_tag=source_tag))

        token = get_auth_token(RestClient(self._http, AUTH_HOST, dict(shared), retries), client_id, client_secret)
        log.debug("admin client authenticated client_id=%s", client_id)
        self.headers = {**shared, "Authorization": f"Bearer {token}"}

        rest = RestClient(self._http, ADMIN_HOST, self.headers, retries)
        self.project = ProjectAdmin(rest)
        self.organization = OrganizationAdmin(rest)
        self.api_key = ApiKeyAdmin(rest)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
