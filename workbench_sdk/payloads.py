"""Request payload builders shared by WorkbenchClient and AsyncWorkbenchClient.

Everything here is pure: arguments are validated and bodies computed without
touching the network, so both clients raise the same ValidationError before
any request is made.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Union
from urllib.parse import quote

import pydantic

from workbench_sdk.errors import ValidationError
from workbench_sdk.models import (
    MEMBERSHIP_ACTIONS,
    PERMISSION_LEVELS,
    SERVER_MANAGED_FIELDS,
    STUDY_CATEGORIES,
    STUDY_TYPES,
    USER_ROLES,
    USER_STATUSES,
    NewProject,
    NewStudy,
    NewUser,
    PermissionChange,
    PermissionEntry,
    Project,
    ProjectUpdate,
    User,
    UserUpdate,
    WorkspaceConfiguration,
)
from workbench_sdk.utils import check_choice, ref_id, strip_fields


def _validated(model, field: str, value: Any, data: Mapping):
    """model.model_validate(data), reporting bad caller input as ValidationError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(field, value, message=f"Invalid {field}: {problems}") from e


def studies_path(category: str = "Organization") -> str:
    """Path for GET /api/studies/ with the category percent-encoded."""
    check_choice("category", category, STUDY_CATEGORIES)
    return f"/api/studies/?category={quote(category)}"


def new_federated_user(idp: Any, federation_url: str, email: str, role: str = "researcher") -> NewUser:
    check_choice("role", role, USER_ROLES)
    email = email.lower()
    return NewUser(
        email=email,
        identity_provider_name=ref_id(idp, "id", "idp"),
        project_id=[],
        user_role=role,
        authentication_provider_id=federation_url,
        username=email,
    )


def check_user_details(status: str, role: str) -> None:
    check_choice("status", status, USER_STATUSES)
    check_choice("role", role, USER_ROLES)


def user_details_update(user: User, firstname: str, surname: str, status: str, role: str) -> UserUpdate:
    """Carry over the fields the server needs and overwrite the editable ones."""
    return UserUpdate(
        apply_reason=user.apply_reason,
        email=user.email,
        first_name=firstname,
        is_admin=user.is_admin,
        is_external_user=user.is_external_user,
        last_name=surname,
        project_id=list(user.project_id),
        rev=user.rev,
        status=status,
        user_role=role,
    )


def project_membership_update(user: User, project_id: str, action: str) -> UserUpdate:
    """Build the user update that adds or removes one project.

    The project is always removed first and re-appended only for "add", so it
    appears at most once whatever the user's current list holds.
    """
    projects = [p for p in user.project_id if p != project_id]
    if action == "add":
        projects.append(project_id)
    return UserUpdate(
        apply_reason=user.apply_reason,
        email=user.email,
        first_name=user.first_name,
        is_admin=user.is_admin,
        is_external_user=user.is_external_user,
        last_name=user.last_name,
        project_id=projects,
        rev=user.rev,
        status=user.status,
        user_role=user.user_role,
    )


def check_membership_action(action: str) -> None:
    check_choice("action", action, MEMBERSHIP_ACTIONS)


def project_update(project: Union[Project, Mapping]) -> ProjectUpdate:
    if not isinstance(project, Project):
        project = _validated(Project, "project", project, project)
    return ProjectUpdate(
        description=project.description,
        id=project.id,
        index_id=project.index_id,
        project_admins=list(project.project_admins),
        rev=project.rev,
    )


def new_project(project_id: str, description: str, index: Any, admins: Iterable[Any]) -> NewProject:
    data = {
        "id": project_id,
        "description": description,
        "index_id": ref_id(index, "id", "index"),
        "project_admins": [ref_id(admin, "uid", "admins") for admin in admins],
    }
    return _validated(NewProject, "project", project_id, data)


def new_study(
    study_id: str,
    name: str,
    description: str,
    project_id: str,
    category: str = "Organization",
    study_type: str = "unstructured",
    upload_location_enabled: bool = True,
) -> NewStudy:
    check_choice("category", category, STUDY_CATEGORIES)
    check_choice("study_type", study_type, STUDY_TYPES)
    data = {
        "id": study_id,
        "study_type": study_type,
        "name": name,
        "description": description,
        "project_id": [project_id],
        "category": category,
        "upload_location_enabled": upload_location_enabled,
    }
    return _validated(NewStudy, "study", study_id, data)


def permission_change(user_id: str, action: str, permission_level: str = "readonly") -> PermissionChange:
    """Differential permission body: only the one user being added or removed."""
    check_choice("permission_level", permission_level, PERMISSION_LEVELS)
    check_choice("action", action, MEMBERSHIP_ACTIONS)
    entry = PermissionEntry(uid=user_id, permission_level=permission_level)
    if action == "add":
        return PermissionChange(users_to_add=[entry], users_to_remove=[])
    return PermissionChange(users_to_add=[], users_to_remove=[entry])


def workspace_configuration_update(config: Union[WorkspaceConfiguration, Mapping]) -> WorkspaceConfiguration:
    """Copy of config without the server-managed fields. config is not modified."""
    if isinstance(config, WorkspaceConfiguration):
        body = config.to_body()
    elif isinstance(config, Mapping):
        body = _validated(WorkspaceConfiguration, "config", config, config).to_body()
    else:
        raise ValidationError("config", config, message=f"Invalid config: {config!r}")
    return WorkspaceConfiguration.model_validate(strip_fields(body, SERVER_MANAGED_FIELDS))


def find_user(users: Optional[List[User]], **match: Any) -> Optional[User]:
    """First user whose attributes equal every keyword in match."""
    for user in users or ():
        if all(getattr(user, key) == value for key, value in match.items()):
            return user
    return None
