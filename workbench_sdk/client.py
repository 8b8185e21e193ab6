"""WorkbenchClient: synchronous Python SDK for the Service Workbench admin API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from workbench_sdk import payloads
from workbench_sdk.auth import JSON_HEADERS, build_auth_headers, build_login_body
from workbench_sdk.config import ClientSettings
from workbench_sdk.errors import ApiError, AuthError, NotFoundError
from workbench_sdk.models import (
    IdentityProvider,
    NewProject,
    NewStudy,
    NewUser,
    Payload,
    PermissionChange,
    Project,
    ProjectUpdate,
    Study,
    StudyPermission,
    User,
    UserUpdate,
    WorkspaceConfiguration,
    WorkspaceType,
)
from workbench_sdk.responses import (
    check_embedded_error,
    decode_json,
    parse,
    parse_list,
    raise_for_status,
)
from workbench_sdk.utils import same_members

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/authentication/id-tokens"
PROVIDERS_PATH = "/api/authentication/public/provider/configs"


class WorkbenchClient:
    """Synchronous client for the Service Workbench API.

    Usage::

        from workbench_sdk import WorkbenchClient

        swb = WorkbenchClient("https://swb.example.org", "admin", "secret")
        me = swb.login()
        idp = swb.get_idp("university")
        swb.add_federated_user(idp, "https://cognito-idp.example/pool", "Jo@Example.org")

    With ``dry_run=True`` every mutating call returns the request body it
    would have sent (a :class:`~workbench_sdk.models.Payload`) instead of
    sending it.
    """

    def __init__(
        self,
        api: str,
        username: str,
        password: str,
        *,
        dry_run: bool = False,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api = api.rstrip("/")
        self.username = username
        self.dry_run = dry_run
        self._password = password
        self._token: Optional[str] = None
        self._idp_cache: Optional[List[IdentityProvider]] = None
        self._client = http_client or httpx.Client(base_url=self.api, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "WorkbenchClient":
        return cls(
            settings.api,
            settings.username,
            settings.password,
            dry_run=settings.dry_run,
            timeout=settings.timeout,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"WorkbenchClient(api={self.api!r}, username={self.username!r}, dry_run={self.dry_run!r})"

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    # ── Internal helpers ─────────────────────────────────────────

    def _send(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> httpx.Response:
        endpoint = f"{method} {path}"
        headers = build_auth_headers(self._token) if auth else dict(JSON_HEADERS)
        logger.debug("%s", endpoint)
        try:
            return self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(None, f"Request failed: {e} (endpoint: {endpoint})") from e

    def _call(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        resp = self._send(method, path, json=json, auth=auth)
        endpoint = f"{method} {path}"
        raise_for_status(resp, endpoint)
        return decode_json(resp, endpoint)

    def _get(self, path: str, *, auth: bool = True) -> Any:
        return self._call("GET", path, auth=auth)

    def _skip_write(self, endpoint: str, payload: Union[Payload, WorkspaceConfiguration]) -> Any:
        # dry-run writes require a login too
        build_auth_headers(self._token)
        logger.info("Dry run, not sending %s", endpoint)
        return payload

    # ── Authentication ───────────────────────────────────────────

    def login(self) -> User:
        """Exchange username/password for an id token and return the caller's profile.

        Any non-success status raises AuthError. The token is kept even if the
        follow-up profile request fails.
        """
        endpoint = f"POST {LOGIN_PATH}"
        resp = self._send(
            "POST",
            LOGIN_PATH,
            json=build_login_body(self.username, self._password),
            auth=False,
        )
        if not resp.is_success:
            raise AuthError(resp.status_code, f"authentication failed (endpoint: {endpoint})")
        body = decode_json(resp, endpoint)
        token = body.get("idToken") if isinstance(body, dict) else None
        if not token:
            raise AuthError(resp.status_code, f"authentication failed: no idToken in response (endpoint: {endpoint})")
        self._token = token
        logger.info("Authenticated to %s as %s", self.api, self.username)
        return self.get_current_user()

    def get_current_user(self) -> User:
        """GET /api/user"""
        return parse(User, self._get("/api/user"), "GET /api/user")

    def get_idp(self, name: str) -> Optional[IdentityProvider]:
        """Identity provider whose id is ``name``, or None.

        The provider list is public and fetched once per client.
        """
        if self._idp_cache is None:
            data = self._get(PROVIDERS_PATH, auth=False)
            self._idp_cache = parse_list(IdentityProvider, data, f"GET {PROVIDERS_PATH}")
        return next((idp for idp in self._idp_cache if idp.id == name), None)

    # ── Users ────────────────────────────────────────────────────

    def get_users(self) -> List[User]:
        """GET /api/users. The API has no per-user fetch, so lookups scan this."""
        return parse_list(User, self._get("/api/users"), "GET /api/users")

    def get_user(self, uid: str) -> User:
        user = payloads.find_user(self.get_users(), uid=uid)
        if user is None:
            raise NotFoundError(None, f"uid {uid} not found", context={"uid": uid})
        return user

    def get_user_by_email_and_idp(self, email: str, idp_name: str) -> User:
        """Find a user by exact email (case sensitive) and identity provider name."""
        user = payloads.find_user(self.get_users(), email=email, identity_provider_name=idp_name)
        if user is None:
            raise NotFoundError(
                None,
                f"{email} not found for {idp_name}",
                context={"email": email, "idp": idp_name},
            )
        return user

    def add_federated_user(
        self,
        idp: Union[IdentityProvider, Mapping[str, Any], str],
        federation_url: str,
        email: str,
        role: str = "researcher",
    ) -> Union[User, NewUser]:
        """POST /api/users"""
        payload = payloads.new_federated_user(idp, federation_url, email, role)
        if self.dry_run:
            return self._skip_write("POST /api/users", payload)
        data = self._call("POST", "/api/users", json=payload.to_body())
        return parse(User, data, "POST /api/users")

    def update_user_details(
        self,
        uid: str,
        firstname: str,
        surname: str,
        status: str,
        role: str,
    ) -> Union[User, UserUpdate]:
        """Change a user's name, status and role."""
        payloads.check_user_details(status, role)
        user = payloads.find_user(self.get_users(), uid=uid)
        if user is None:
            raise NotFoundError(
                None,
                f"uid {uid} not found while updating user details",
                context={"uid": uid},
            )
        payload = payloads.user_details_update(user, firstname, surname, status, role)
        endpoint = f"PUT /api/users/{uid}"
        if self.dry_run:
            return self._skip_write(endpoint, payload)
        data = self._call("PUT", f"/api/users/{uid}", json=payload.to_body())
        return parse(User, data, endpoint)

    def add_remove_project_user(self, project_id: str, uid: str, action: str = "add") -> Union[User, UserUpdate]:
        """Add a user to, or remove a user from, a project.

        Returns the unchanged user without writing if the membership is
        already as requested.
        """
        payloads.check_membership_action(action)
        user = payloads.find_user(self.get_users(), uid=uid)
        if user is None:
            raise NotFoundError(
                None,
                f"uid {uid} not found while {action} to/from {project_id}",
                context={"uid": uid, "project_id": project_id, "action": action},
            )
        payload = payloads.project_membership_update(user, project_id, action)
        if same_members(user.project_id, payload.project_id):
            logger.info("User %s already has the requested membership of %s", uid, project_id)
            return user
        endpoint = f"PUT /api/users/{uid}"
        if self.dry_run:
            return self._skip_write(endpoint, payload)
        data = self._call("PUT", f"/api/users/{uid}", json=payload.to_body())
        return parse(User, data, endpoint)

    # ── Projects ─────────────────────────────────────────────────

    def get_project(self, project_id: str) -> Project:
        """GET /api/projects/{id}"""
        path = f"/api/projects/{project_id}"
        return parse(Project, self._get(path), f"GET {path}")

    def get_projects(self) -> List[Project]:
        """GET /api/projects"""
        return parse_list(Project, self._get("/api/projects"), "GET /api/projects")

    def update_project(self, project: Union[Project, Mapping[str, Any]]) -> Union[Project, ProjectUpdate]:
        """PUT /api/projects/{id} with only the editable fields of project."""
        payload = payloads.project_update(project)
        path = f"/api/projects/{payload.id}"
        if self.dry_run:
            return self._skip_write(f"PUT {path}", payload)
        return parse(Project, self._call("PUT", path, json=payload.to_body()), f"PUT {path}")

    def create_project(
        self,
        project_id: str,
        description: str,
        index: Any,
        admins: Iterable[Any],
    ) -> Union[Project, NewProject]:
        """POST /api/projects

        ``index`` is an index record (or its id); ``admins`` are users (or uids).
        """
        payload = payloads.new_project(project_id, description, index, admins)
        if self.dry_run:
            return self._skip_write("POST /api/projects", payload)
        data = self._call("POST", "/api/projects", json=payload.to_body())
        return parse(Project, data, "POST /api/projects")

    # ── Studies ──────────────────────────────────────────────────

    def get_studies(self, category: str = "Organization") -> List[Study]:
        """GET /api/studies/?category=... with "Organization" or "My Studies"."""
        path = payloads.studies_path(category)
        return parse_list(Study, self._get(path), f"GET {path}")

    def get_study(self, study_id: str) -> Study:
        """GET /api/studies/{id}"""
        path = f"/api/studies/{study_id}"
        return parse(Study, self._get(path), f"GET {path}")

    def create_study(
        self,
        study_id: str,
        name: str,
        description: str,
        project_id: str,
        category: str = "Organization",
        study_type: str = "unstructured",
        upload_location_enabled: bool = True,
    ) -> Union[Study, NewStudy]:
        """POST /api/studies"""
        payload = payloads.new_study(
            study_id, name, description, project_id, category, study_type, upload_location_enabled
        )
        logger.debug("Study body: %s", payload.to_body())
        if self.dry_run:
            return self._skip_write("POST /api/studies", payload)
        data = self._call("POST", "/api/studies", json=payload.to_body())
        return parse(Study, data, "POST /api/studies")

    def get_study_permissions(self, study_id: str) -> StudyPermission:
        """GET /api/studies/{id}/permissions"""
        path = f"/api/studies/{study_id}/permissions"
        return parse(StudyPermission, self._get(path), f"GET {path}")

    def add_remove_study_permission(
        self,
        study_id: str,
        user_id: str,
        action: str,
        permission_level: str = "readonly",
    ) -> Union[StudyPermission, PermissionChange]:
        """Grant or revoke one user's access to a study.

        Raises RemoteError if the service answers with an embedded error code.
        """
        payload = payloads.permission_change(user_id, action, permission_level)
        path = f"/api/studies/{study_id}/permissions"
        endpoint = f"PUT {path}"
        if self.dry_run:
            return self._skip_write(endpoint, payload)
        resp = self._send("PUT", path, json=payload.to_body())
        raise_for_status(resp, endpoint)
        body = decode_json(resp, endpoint)
        check_embedded_error(body, resp.status_code, endpoint)
        return parse(StudyPermission, body, endpoint)

    # ── Workspace types ──────────────────────────────────────────

    def get_workspace_types(self) -> List[WorkspaceType]:
        """GET /api/workspace-types?status=*"""
        path = "/api/workspace-types?status=*"
        return parse_list(WorkspaceType, self._get(path), f"GET {path}")

    def get_workspace_configurations(self, workspace_type: str) -> List[WorkspaceConfiguration]:
        """GET /api/workspace-types/{type}/configurations/?include=all"""
        path = f"/api/workspace-types/{workspace_type}/configurations/?include=all"
        return parse_list(WorkspaceConfiguration, self._get(path), f"GET {path}")

    def update_workspace_configuration(
        self,
        workspace_type: str,
        config: Union[WorkspaceConfiguration, Mapping[str, Any]],
    ) -> WorkspaceConfiguration:
        """PUT a workspace configuration without its server-managed fields.

        In dry-run mode the stripped configuration is returned unsent.
        """
        payload = payloads.workspace_configuration_update(config)
        path = f"/api/workspace-types/{workspace_type}/configurations/{payload.id}"
        if self.dry_run:
            return self._skip_write(f"PUT {path}", payload)
        data = self._call("PUT", path, json=payload.to_body())
        return parse(WorkspaceConfiguration, data, f"PUT {path}")

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "WorkbenchClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
