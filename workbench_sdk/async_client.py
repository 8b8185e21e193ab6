"""AsyncWorkbenchClient: asynchronous Python SDK for the Service Workbench admin API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from workbench_sdk import payloads
from workbench_sdk.auth import JSON_HEADERS, build_auth_headers, build_login_body
from workbench_sdk.client import LOGIN_PATH, PROVIDERS_PATH
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


class AsyncWorkbenchClient:
    """Asynchronous client for the Service Workbench API.

    Usage::

        import asyncio
        from workbench_sdk import AsyncWorkbenchClient

        async def main():
            async with AsyncWorkbenchClient("https://swb.example.org", "admin", "secret") as swb:
                await swb.login()
                for project in await swb.get_projects():
                    print(project.id)

        asyncio.run(main())

    Calls may run concurrently on one client. There is no locking: the token
    is assigned when a login completes and the provider list when the first
    ``get_idp`` completes, so concurrent first calls to ``get_idp`` may each
    fetch the list.
    """

    def __init__(
        self,
        api: str,
        username: str,
        password: str,
        *,
        dry_run: bool = False,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api = api.rstrip("/")
        self.username = username
        self.dry_run = dry_run
        self._password = password
        self._token: Optional[str] = None
        self._idp_cache: Optional[List[IdentityProvider]] = None
        self._client = http_client or httpx.AsyncClient(base_url=self.api, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "AsyncWorkbenchClient":
        return cls(
            settings.api,
            settings.username,
            settings.password,
            dry_run=settings.dry_run,
            timeout=settings.timeout,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"AsyncWorkbenchClient(api={self.api!r}, username={self.username!r}, dry_run={self.dry_run!r})"

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    # ── Internal helpers ─────────────────────────────────────────

    async def _send(
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
            return await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(None, f"Request failed: {e} (endpoint: {endpoint})") from e

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        resp = await self._send(method, path, json=json, auth=auth)
        endpoint = f"{method} {path}"
        raise_for_status(resp, endpoint)
        return decode_json(resp, endpoint)

    async def _get(self, path: str, *, auth: bool = True) -> Any:
        return await self._call("GET", path, auth=auth)

    def _skip_write(self, endpoint: str, payload: Union[Payload, WorkspaceConfiguration]) -> Any:
        # dry-run writes require a login too
        build_auth_headers(self._token)
        logger.info("Dry run, not sending %s", endpoint)
        return payload

    # ── Authentication ───────────────────────────────────────────

    async def login(self) -> User:
        """Exchange username/password for an id token and return the caller's profile."""
        endpoint = f"POST {LOGIN_PATH}"
        resp = await self._send(
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
        return await self.get_current_user()

    async def get_current_user(self) -> User:
        """GET /api/user"""
        return parse(User, await self._get("/api/user"), "GET /api/user")

    async def get_idp(self, name: str) -> Optional[IdentityProvider]:
        """Identity provider whose id is ``name``, or None."""
        if self._idp_cache is None:
            data = await self._get(PROVIDERS_PATH, auth=False)
            self._idp_cache = parse_list(IdentityProvider, data, f"GET {PROVIDERS_PATH}")
        return next((idp for idp in self._idp_cache if idp.id == name), None)

    # ── Users ────────────────────────────────────────────────────

    async def get_users(self) -> List[User]:
        """GET /api/users"""
        return parse_list(User, await self._get("/api/users"), "GET /api/users")

    async def get_user(self, uid: str) -> User:
        user = payloads.find_user(await self.get_users(), uid=uid)
        if user is None:
            raise NotFoundError(None, f"uid {uid} not found", context={"uid": uid})
        return user

    async def get_user_by_email_and_idp(self, email: str, idp_name: str) -> User:
        user = payloads.find_user(await self.get_users(), email=email, identity_provider_name=idp_name)
        if user is None:
            raise NotFoundError(
                None,
                f"{email} not found for {idp_name}",
                context={"email": email, "idp": idp_name},
            )
        return user

    async def add_federated_user(
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
        data = await self._call("POST", "/api/users", json=payload.to_body())
        return parse(User, data, "POST /api/users")

    async def update_user_details(
        self,
        uid: str,
        firstname: str,
        surname: str,
        status: str,
        role: str,
    ) -> Union[User, UserUpdate]:
        payloads.check_user_details(status, role)
        user = payloads.find_user(await self.get_users(), uid=uid)
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
        data = await self._call("PUT", f"/api/users/{uid}", json=payload.to_body())
        return parse(User, data, endpoint)

    async def add_remove_project_user(
        self,
        project_id: str,
        uid: str,
        action: str = "add",
    ) -> Union[User, UserUpdate]:
        payloads.check_membership_action(action)
        user = payloads.find_user(await self.get_users(), uid=uid)
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
        data = await self._call("PUT", f"/api/users/{uid}", json=payload.to_body())
        return parse(User, data, endpoint)

    # ── Projects ─────────────────────────────────────────────────

    async def get_project(self, project_id: str) -> Project:
        path = f"/api/projects/{project_id}"
        return parse(Project, await self._get(path), f"GET {path}")

    async def get_projects(self) -> List[Project]:
        return parse_list(Project, await self._get("/api/projects"), "GET /api/projects")

    async def update_project(self, project: Union[Project, Mapping[str, Any]]) -> Union[Project, ProjectUpdate]:
        payload = payloads.project_update(project)
        path = f"/api/projects/{payload.id}"
        if self.dry_run:
            return self._skip_write(f"PUT {path}", payload)
        return parse(Project, await self._call("PUT", path, json=payload.to_body()), f"PUT {path}")

    async def create_project(
        self,
        project_id: str,
        description: str,
        index: Any,
        admins: Iterable[Any],
    ) -> Union[Project, NewProject]:
        payload = payloads.new_project(project_id, description, index, admins)
        if self.dry_run:
            return self._skip_write("POST /api/projects", payload)
        data = await self._call("POST", "/api/projects", json=payload.to_body())
        return parse(Project, data, "POST /api/projects")

    # ── Studies ──────────────────────────────────────────────────

    async def get_studies(self, category: str = "Organization") -> List[Study]:
        path = payloads.studies_path(category)
        return parse_list(Study, await self._get(path), f"GET {path}")

    async def get_study(self, study_id: str) -> Study:
        path = f"/api/studies/{study_id}"
        return parse(Study, await self._get(path), f"GET {path}")

    async def create_study(
        self,
        study_id: str,
        name: str,
        description: str,
        project_id: str,
        category: str = "Organization",
        study_type: str = "unstructured",
        upload_location_enabled: bool = True,
    ) -> Union[Study, NewStudy]:
        payload = payloads.new_study(
            study_id, name, description, project_id, category, study_type, upload_location_enabled
        )
        logger.debug("Study body: %s", payload.to_body())
        if self.dry_run:
            return self._skip_write("POST /api/studies", payload)
        data = await self._call("POST", "/api/studies", json=payload.to_body())
        return parse(Study, data, "POST /api/studies")

    async def get_study_permissions(self, study_id: str) -> StudyPermission:
        path = f"/api/studies/{study_id}/permissions"
        return parse(StudyPermission, await self._get(path), f"GET {path}")

    async def add_remove_study_permission(
        self,
        study_id: str,
        user_id: str,
        action: str,
        permission_level: str = "readonly",
    ) -> Union[StudyPermission, PermissionChange]:
        payload = payloads.permission_change(user_id, action, permission_level)
        path = f"/api/studies/{study_id}/permissions"
        endpoint = f"PUT {path}"
        if self.dry_run:
            return self._skip_write(endpoint, payload)
        resp = await self._send("PUT", path, json=payload.to_body())
        raise_for_status(resp, endpoint)
        body = decode_json(resp, endpoint)
        check_embedded_error(body, resp.status_code, endpoint)
        return parse(StudyPermission, body, endpoint)

    # ── Workspace types ──────────────────────────────────────────

    async def get_workspace_types(self) -> List[WorkspaceType]:
        path = "/api/workspace-types?status=*"
        return parse_list(WorkspaceType, await self._get(path), f"GET {path}")

    async def get_workspace_configurations(self, workspace_type: str) -> List[WorkspaceConfiguration]:
        path = f"/api/workspace-types/{workspace_type}/configurations/?include=all"
        return parse_list(WorkspaceConfiguration, await self._get(path), f"GET {path}")

    async def update_workspace_configuration(
        self,
        workspace_type: str,
        config: Union[WorkspaceConfiguration, Mapping[str, Any]],
    ) -> WorkspaceConfiguration:
        payload = payloads.workspace_configuration_update(config)
        path = f"/api/workspace-types/{workspace_type}/configurations/{payload.id}"
        if self.dry_run:
            return self._skip_write(f"PUT {path}", payload)
        data = await self._call("PUT", path, json=payload.to_body())
        return parse(WorkspaceConfiguration, data, f"PUT {path}")

    # ── Context Manager ─────────────────────────────────────────

    async def __aenter__(self) -> "AsyncWorkbenchClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
