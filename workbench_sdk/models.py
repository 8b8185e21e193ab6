"""Pydantic models for Workbench records and request payloads.

Python attributes are snake_case; the wire format is camelCase. Fields the
server adds that are not declared here are kept, so a fetched record can be
edited and sent back.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


USER_ROLES = ("researcher", "admin")
USER_STATUSES = ("active", "inactive")
STUDY_CATEGORIES = ("Organization", "My Studies")
STUDY_TYPES = ("unstructured", "structured")
PERMISSION_LEVELS = ("readonly", "admin")
MEMBERSHIP_ACTIONS = ("add", "remove")

# Set by the server; rejected when a workspace configuration is resubmitted.
SERVER_MANAGED_FIELDS = ("createdBy", "updatedBy", "createdAt", "updatedAt", "allowedToUse")


class WorkbenchModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_body(self) -> Dict[str, Any]:
        """Wire representation: camelCase keys, only fields actually present."""
        unset = set(type(self).model_fields) - self.model_fields_set
        return self.model_dump(by_alias=True, exclude=unset)


class AuditedModel(WorkbenchModel):
    created_at: Optional[str] = None
    created_by: Optional[str] = None
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None


# ── Identity ─────────────────────────────────────────────────────

class IdentityProvider(WorkbenchModel):
    id: str
    title: Optional[str] = None
    type: Optional[str] = None
    credential_handling_type: Optional[str] = None
    sign_in_uri: Optional[str] = None
    sign_out_uri: Optional[str] = None


class User(AuditedModel):
    uid: Optional[str] = None
    username: Optional[str] = None
    username_in_idp: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_role: Optional[str] = None
    status: Optional[str] = None
    is_admin: Optional[bool] = None
    is_external_user: Optional[bool] = None
    rev: Optional[int] = None
    project_id: List[str] = Field(default_factory=list)
    identity_provider_name: Optional[str] = None
    authentication_provider_id: Optional[str] = None
    ns: Optional[Any] = None
    apply_reason: Optional[str] = None
    encrypted_creds: Optional[str] = None

    @field_validator("project_id", mode="before")
    @classmethod
    def _null_projects(cls, value: Any) -> Any:
        return [] if value is None else value


# ── Projects ─────────────────────────────────────────────────────

class Index(WorkbenchModel):
    id: str


class Project(AuditedModel):
    id: str
    description: Optional[str] = None
    index_id: Optional[str] = None
    project_admins: List[str] = Field(default_factory=list)
    project_security_group: Optional[str] = None
    rev: Optional[int] = None


# ── Studies ──────────────────────────────────────────────────────

class StudyResource(WorkbenchModel):
    arn: Optional[str] = None


class StudyPermission(AuditedModel):
    id: Optional[str] = None
    admin_users: List[str] = Field(default_factory=list)
    readonly_users: List[str] = Field(default_factory=list)


class Study(AuditedModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    project_id: List[str] = Field(default_factory=list)
    study_type: Optional[str] = None
    category: Optional[str] = None
    upload_location_enabled: Optional[bool] = None
    access: Optional[Any] = None
    resources: List[StudyResource] = Field(default_factory=list)
    permissions: Optional[StudyPermission] = None
    rev: Optional[int] = None


# ── Workspaces ───────────────────────────────────────────────────

class WorkspaceType(AuditedModel):
    id: str
    name: Optional[str] = None
    desc: Optional[str] = None
    status: Optional[str] = None
    product: Optional[Dict[str, Any]] = None
    provisioning_artifact: Optional[Dict[str, Any]] = None
    params: Optional[Any] = None
    rev: Optional[int] = None


class WorkspaceConfiguration(AuditedModel):
    id: str
    name: Optional[str] = None
    desc: Optional[str] = None
    params: Optional[Any] = None
    allow_role_ids: Optional[List[str]] = None
    deny_role_ids: Optional[List[str]] = None
    allowed_to_use: Optional[bool] = None
    rev: Optional[int] = None


# ── Request payloads ─────────────────────────────────────────────

class Payload(WorkbenchModel):
    """A request body. Returned as-is by mutating calls in dry-run mode."""

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class NewUser(Payload):
    email: str
    identity_provider_name: str
    project_id: List[str] = Field(default_factory=list)
    user_role: str
    authentication_provider_id: str
    username: str


class UserUpdate(Payload):
    apply_reason: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    is_admin: Optional[bool] = None
    is_external_user: Optional[bool] = None
    last_name: Optional[str] = None
    project_id: List[str] = Field(default_factory=list)
    rev: Optional[int] = None
    status: Optional[str] = None
    user_role: Optional[str] = None


class ProjectUpdate(Payload):
    description: Optional[str] = None
    id: str
    index_id: Optional[str] = None
    project_admins: List[str] = Field(default_factory=list)
    rev: Optional[int] = None


class NewProject(Payload):
    id: str
    description: str
    index_id: str
    project_admins: List[str] = Field(default_factory=list)


class NewStudy(Payload):
    id: str
    study_type: str
    name: str
    description: str
    project_id: List[str]
    category: str
    upload_location_enabled: bool


class PermissionEntry(Payload):
    uid: str
    permission_level: str


class PermissionChange(Payload):
    users_to_add: List[PermissionEntry] = Field(default_factory=list)
    users_to_remove: List[PermissionEntry] = Field(default_factory=list)
