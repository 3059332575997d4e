# conifer/wire/admin.py
"""JSON bodies of the admin REST API and the OAuth token endpoint."""
from __future__ import annotations
from typing import Optional

from pydantic import BaseModel


class TokenRequest(BaseModel):
    client_id: str
    client_secret: str
    grant_type: str = "client_credentials"
    audience: str = "https://api.pinecone.io/"


class TokenResponse(BaseModel):
    access_token: str
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None


class ProjectModel(BaseModel):
    id: str
    name: str
    max_pods: int = 0
    force_encryption_with_cmek: bool = False
    organization_id: str = ""
    created_at: Optional[str] = None


class ProjectList(BaseModel):
    data: Optional[list[ProjectModel]] = None


class CreateProjectRequest(BaseModel):
    name: str
    max_pods: Optional[int] = None
    force_encryption_with_cmek: Optional[bool] = None


class UpdateProjectRequest(BaseModel):
    name: Optional[str] = None
    max_pods: Optional[int] = None
    force_encryption_with_cmek: Optional[bool] = None


class OrganizationModel(BaseModel):
    id: str
    name: str
    plan: str = ""
    payment_status: str = ""
    support_tier: str = ""
    created_at: Optional[str] = None


class OrganizationList(BaseModel):
    data: Optional[list[OrganizationModel]] = None


class UpdateOrganizationRequest(BaseModel):
    name: Optional[str] = None


class APIKeyModel(BaseModel):
    id: str
    name: str
    project_id: str
    roles: list[str] = []


class APIKeyList(BaseModel):
    data: Optional[list[APIKeyModel]] = None


class APIKeyWithSecret(BaseModel):
    key: APIKeyModel
    value: str


class CreateAPIKeyRequest(BaseModel):
    name: str
    roles: Optional[list[str]] = None


class UpdateAPIKeyRequest(BaseModel):
    name: Optional[str] = None
    roles: Optional[list[str]] = None
