"""Tests for projects, studies and study permissions."""

from __future__ import annotations

import pytest

from workbench_sdk import NotFoundError, RemoteError, ValidationError
from workbench_sdk.models import Index, NewProject, NewStudy, PermissionChange, Project, Study, StudyPermission, User


# ── Projects ─────────────────────────────────────────────────────

class TestProjects:
    def test_get_project(self, swb):
        project = swb.get_project("proj1")
        assert isinstance(project, Project)
        assert project.index_id == "idx1"
        assert project.project_admins == ["u-1"]

    def test_get_missing_project_maps_404(self, swb):
        with pytest.raises(NotFoundError) as exc_info:
            swb.get_project("nope")
        assert exc_info.value.status_code == 404

    def test_get_projects(self, swb):
        projects = swb.get_projects()
        assert [p.id for p in projects] == ["proj1"]

    def test_update_project_sends_editable_fields_only(self, swb, stub):
        project = swb.get_project("proj1")
        project.description = "Renamed"
        project.project_admins.append("u-2")
        updated = swb.update_project(project)
        sent = stub.calls("PUT", "/api/projects/proj1")[0].body
        assert sent == {
            "description": "Renamed",
            "id": "proj1",
            "indexId": "idx1",
            "projectAdmins": ["u-1", "u-2"],
            "rev": 2,
        }
        assert updated.description == "Renamed"
        assert updated.rev == 3

    def test_update_project_accepts_mapping(self, dry_swb):
        payload = dry_swb.update_project(
            {"id": "proj1", "description": "d", "indexId": "idx1", "projectAdmins": [], "rev": 5, "createdBy": "u-1"}
        )
        assert payload.to_body() == {"description": "d", "id": "proj1", "indexId": "idx1", "projectAdmins": [], "rev": 5}

    def test_create_project_reduces_admins_to_ids(self, swb, stub):
        admins = [swb.get_user("u-1"), {"uid": "u-2"}, "u-3"]
        project = swb.create_project("proj2", "Second project", Index(id="idx1"), admins)
        sent = stub.calls("POST", "/api/projects")[0].body
        assert sent == {
            "id": "proj2",
            "description": "Second project",
            "indexId": "idx1",
            "projectAdmins": ["u-1", "u-2", "u-3"],
        }
        assert project.id == "proj2"

    def test_create_project_rejects_admin_without_uid(self, swb, stub):
        with pytest.raises(ValidationError):
            swb.create_project("proj2", "d", "idx1", [{"email": "x@example.org"}])
        assert stub.requests == []

    def test_create_project_dry_run(self, dry_swb, stub):
        payload = dry_swb.create_project("proj2", "d", {"id": "idx1"}, [User(uid="u-1")])
        assert isinstance(payload, NewProject)
        assert payload.project_admins == ["u-1"]
        assert stub.writes() == []


# ── Studies ──────────────────────────────────────────────────────

class TestStudies:
    def test_default_category_is_organization(self, swb, stub):
        studies = swb.get_studies()
        assert [s.id for s in studies] == ["proj1-study"]
        assert stub.calls("GET", "/api/studies/")[0].query == "category=Organization"

    @pytest.mark.parametrize("category,encoded", [
        ("Organization", "Organization"),
        ("My Studies", "My%20Studies"),
    ])
    def test_category_encoded_once(self, swb, stub, category, encoded):
        swb.get_studies(category)
        query = stub.calls("GET", "/api/studies/")[0].query
        assert query == f"category={encoded}"
        assert query.count("category=") == 1

    def test_my_studies_reach_server_decoded(self, swb):
        studies = swb.get_studies("My Studies")
        assert [s.id for s in studies] == ["my-study"]

    @pytest.mark.parametrize("category", ["organization", "Mine", "", "My%20Studies"])
    def test_invalid_category_fails_before_io(self, swb, stub, category):
        with pytest.raises(ValidationError) as exc_info:
            swb.get_studies(category)
        assert exc_info.value.field == "category"
        assert stub.requests == []

    def test_get_study(self, swb):
        study = swb.get_study("proj1-study")
        assert isinstance(study, Study)
        assert study.project_id == ["proj1"]
        assert study.resources[0].arn == "arn:aws:s3:::bucket/proj1-study/"

    def test_resource_without_arn_is_kept(self, swb, stub):
        stub.studies["proj1-study"]["resources"].append({"name": "scratch"})
        study = swb.get_study("proj1-study")
        assert [r.arn for r in study.resources] == ["arn:aws:s3:::bucket/proj1-study/", None]

    def test_create_study(self, swb, stub):
        study = swb.create_study("proj1-raw", "Raw data", "Raw uploads", "proj1")
        sent = stub.calls("POST", "/api/studies")[0].body
        assert sent == {
            "id": "proj1-raw",
            "studyType": "unstructured",
            "name": "Raw data",
            "description": "Raw uploads",
            "projectId": ["proj1"],
            "category": "Organization",
            "uploadLocationEnabled": True,
        }
        assert study.id == "proj1-raw"

    def test_create_structured_study_without_upload(self, dry_swb):
        payload = dry_swb.create_study(
            "s", "n", "d", "proj1", category="My Studies", study_type="structured", upload_location_enabled=False
        )
        assert isinstance(payload, NewStudy)
        assert payload.to_body()["uploadLocationEnabled"] is False
        assert payload.category == "My Studies"

    def test_create_study_invalid_type(self, swb, stub):
        with pytest.raises(ValidationError) as exc_info:
            swb.create_study("s", "n", "d", "proj1", study_type="tabular")
        assert exc_info.value.field == "study_type"
        assert stub.requests == []

    def test_create_study_invalid_category(self, swb, stub):
        with pytest.raises(ValidationError):
            swb.create_study("s", "n", "d", "proj1", category="Everyone")
        assert stub.requests == []


# ── Study permissions ────────────────────────────────────────────

class TestStudyPermissions:
    def test_get_permissions(self, swb):
        perms = swb.get_study_permissions("proj1-study")
        assert isinstance(perms, StudyPermission)
        assert perms.admin_users == ["u-1"]
        assert perms.readonly_users == []

    def test_add_readonly_user(self, swb, stub):
        perms = swb.add_remove_study_permission("proj1-study", "u-2", "add")
        sent = stub.calls("PUT", "/api/studies/proj1-study/permissions")[0].body
        assert sent == {
            "usersToAdd": [{"uid": "u-2", "permissionLevel": "readonly"}],
            "usersToRemove": [],
        }
        assert perms.readonly_users == ["u-2"]

    def test_remove_admin_user(self, swb, stub):
        perms = swb.add_remove_study_permission("proj1-study", "u-1", "remove", permission_level="admin")
        sent = stub.calls("PUT", "/api/studies/proj1-study/permissions")[0].body
        assert sent == {
            "usersToAdd": [],
            "usersToRemove": [{"uid": "u-1", "permissionLevel": "admin"}],
        }
        assert perms.admin_users == []

    def test_embedded_error_code_raises(self, swb, stub):
        stub.permission_error = {"code": "badRequest", "message": "user u-9 does not exist"}
        with pytest.raises(RemoteError) as exc_info:
            swb.add_remove_study_permission("proj1-study", "u-9", "add")
        assert exc_info.value.code == "badRequest"
        assert "user u-9 does not exist" in str(exc_info.value)

    @pytest.mark.parametrize("action,level,field", [
        ("grant", "readonly", "action"),
        ("add", "write", "permission_level"),
    ])
    def test_invalid_arguments_fail_before_io(self, swb, stub, action, level, field):
        with pytest.raises(ValidationError) as exc_info:
            swb.add_remove_study_permission("proj1-study", "u-2", action, permission_level=level)
        assert exc_info.value.field == field
        assert stub.requests == []

    def test_dry_run(self, dry_swb, stub):
        payload = dry_swb.add_remove_study_permission("proj1-study", "u-2", "add", "admin")
        assert isinstance(payload, PermissionChange)
        assert payload.users_to_add[0].permission_level == "admin"
        assert stub.writes() == []
