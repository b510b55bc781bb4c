"""
API tests for the gherkin, hierarchy and Jira metadata endpoints.
"""
import sys
import os

# Add parent directory to path to import modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock

from api.deps import get_audit_logger, get_jira_client
from main import app
from services.audit_logger import AuditLogger
from services.jira_client import JiraClient, JiraClientError


LOGIN = "Feature: Login\nScenario: Valid password\nGiven a user\nWhen they log in\nThen access is granted"

CONFIG = {"shape": "deep", "project_key": "PROJ"}

PROJECT_TYPES = [
    {"id": "10000", "name": "Epic", "subtask": False},
    {"id": "10004", "name": "Feature", "subtask": False},
    {"id": "10001", "name": "Story", "subtask": False},
    {"id": "10003", "name": "Sub-task", "subtask": True},
]


@pytest.fixture
def jira_client():
    mock_client = Mock(spec=JiraClient)
    mock_client.get_issue_types.return_value = PROJECT_TYPES
    mock_client.search_issues.return_value = []
    mock_client.issue_url.side_effect = lambda key: f"https://example.atlassian.net/browse/{key}"
    keys = iter(f"PROJ-{n}" for n in range(1, 100))
    mock_client.create_issue.side_effect = lambda fields: {"key": next(keys)}
    return mock_client


@pytest.fixture
def client(jira_client, tmp_path):
    app.dependency_overrides[get_jira_client] = lambda: jira_client
    app.dependency_overrides[get_audit_logger] = lambda: AuditLogger(log_dir=str(tmp_path))
    yield TestClient(app)
    app.dependency_overrides.clear()


def _preview(client):
    response = client.post("/api/v1/jira/hierarchy/preview", json={"gherkin_content": LOGIN, "config": CONFIG})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_parse_endpoint(client):
    response = client.post("/api/v1/gherkin/parse", json={"gherkin_content": LOGIN})

    assert response.status_code == 200
    data = response.json()
    assert data["total_scenarios"] == 1
    assert data["features"][0]["name"] == "Login"
    assert data["features"][0]["scenario_names"] == ["Valid password"]


def test_parse_endpoint_rejects_empty_content(client):
    response = client.post("/api/v1/gherkin/parse", json={"gherkin_content": "   "})
    assert response.status_code == 400


def test_feature_files_endpoint(client):
    response = client.post("/api/v1/gherkin/feature-files", json={"gherkin_content": LOGIN})

    assert response.status_code == 200
    assert response.json()["files"][0]["filename"] == "login.feature"


def test_preview_returns_plan_checksum_and_counts(client, jira_client):
    data = _preview(client)

    assert [n["id"] for n in data["plan"]] == ["item-1", "item-2", "item-3"]
    assert data["plan"][0]["display_name"] == "Feature Files"
    assert data["checksum"].startswith("sha256:")
    assert data["counts"] == {"epic": 1, "feature": 1, "story": 1}
    jira_client.create_issue.assert_not_called()


def test_preview_rejects_content_without_features(client):
    response = client.post(
        "/api/v1/jira/hierarchy/preview",
        json={"gherkin_content": "no markers here", "config": CONFIG}
    )
    assert response.status_code == 400


def test_execute_previewed_plan(client, tmp_path):
    preview = _preview(client)

    response = client.post(
        "/api/v1/jira/hierarchy/execute",
        json={"config": CONFIG, "plan": preview["plan"]}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["result"] == "success"
    assert [c["external_key"] for c in data["created"]] == ["PROJ-1", "PROJ-2", "PROJ-3"]
    assert data["checksum"] == preview["checksum"]
    assert data["summary"] == "created 3 of 3 planned issues"
    assert len(list(tmp_path.glob("audit_*.jsonl"))) == 1


def test_execute_partial_failure_is_still_200(client, jira_client):
    def create_issue(fields):
        if fields["summary"] == "Login":
            raise JiraClientError("Issue type is a sub-task but parent issue key or id not specified.", status_code=400)
        return {"key": "PROJ-1"}

    jira_client.create_issue.side_effect = create_issue

    response = client.post(
        "/api/v1/jira/hierarchy/execute",
        json={"config": CONFIG, "gherkin_content": LOGIN}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["result"] == "partial"
    assert [(e["node_id"], e["kind"]) for e in data["errors"]] == [
        ("item-2", "failed"),
        ("item-3", "skipped_missing_parent"),
    ]


def test_execute_warns_about_orphaned_selection(client):
    response = client.post(
        "/api/v1/jira/hierarchy/execute",
        json={"config": CONFIG, "gherkin_content": LOGIN, "selected_ids": ["item-1", "item-3"]}
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["warnings"]) == 1
    assert "item-3" in data["warnings"][0]
    assert [c["node_id"] for c in data["created"]] == ["item-1"]


def test_execute_rejects_checksum_drift(client):
    response = client.post(
        "/api/v1/jira/hierarchy/execute",
        json={"config": CONFIG, "gherkin_content": LOGIN, "checksum": "sha256:stale"}
    )
    assert response.status_code == 409


def test_execute_accepts_matching_checksum(client):
    checksum = _preview(client)["checksum"]
    response = client.post(
        "/api/v1/jira/hierarchy/execute",
        json={"config": CONFIG, "gherkin_content": LOGIN, "checksum": checksum}
    )
    assert response.status_code == 200


def test_execute_requires_plan_or_content(client):
    response = client.post("/api/v1/jira/hierarchy/execute", json={"config": CONFIG})
    assert response.status_code == 400


def test_execute_unresolvable_type_is_422(client, jira_client):
    jira_client.get_issue_types.return_value = [{"id": "1", "name": "Bug", "subtask": False}]

    response = client.post(
        "/api/v1/jira/hierarchy/execute",
        json={"config": CONFIG, "gherkin_content": LOGIN}
    )

    assert response.status_code == 422
    jira_client.create_issue.assert_not_called()


def test_execute_without_jira_config_is_500(monkeypatch, tmp_path):
    for name in ("JIRA_BASE_URL", "JIRA_USERNAME", "JIRA_EMAIL", "JIRA_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    app.dependency_overrides[get_audit_logger] = lambda: AuditLogger(log_dir=str(tmp_path))
    try:
        response = TestClient(app).post(
            "/api/v1/jira/hierarchy/execute",
            json={"config": CONFIG, "gherkin_content": LOGIN}
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "JIRA_BASE_URL" in response.json()["detail"]


def test_meta_projects(client, jira_client):
    jira_client.get_projects.return_value = [{"id": "1", "key": "PROJ", "name": "Project"}]

    response = client.get("/api/v1/jira/meta/projects")

    assert response.status_code == 200
    assert response.json()[0]["key"] == "PROJ"


def test_meta_jira_failure_is_502(client, jira_client):
    jira_client.get_projects.side_effect = JiraClientError("Unauthorized", status_code=401)

    response = client.get("/api/v1/jira/meta/projects")
    assert response.status_code == 502


def test_meta_parent_issues_falls_back_to_high_level_types(client, jira_client):
    jira_client.search_issues.side_effect = [
        JiraClientError("The value 'Initiative' does not exist for the field 'issuetype'.", status_code=400),
        [{"issue_key": "PROJ-5", "summary": "Platform", "id": "5", "issue_type": "Theme"}],
    ]
    jira_client.list_issue_types.return_value = [
        {"id": "1", "name": "Theme", "description": "", "subtask": False},
        {"id": "2", "name": "Story", "description": "", "subtask": False},
    ]

    response = client.get("/api/v1/jira/meta/parent-issues", params={"project_key": "PROJ", "shape": "deep"})

    assert response.status_code == 200
    assert response.json()[0]["issue_key"] == "PROJ-5"
    fallback_jql = jira_client.search_issues.call_args_list[1].args[0]
    assert 'issuetype = "Theme"' in fallback_jql
    assert "Story" not in fallback_jql


def test_meta_epic_fields(client, jira_client):
    jira_client.list_issue_types.return_value = [
        {"id": "10000", "name": "Epic", "description": "", "subtask": False},
        {"id": "10001", "name": "Story", "description": "", "subtask": False},
    ]
    jira_client.get_fields.return_value = [
        {"id": "customfield_10011", "name": "Epic Name", "custom": True, "schema": None},
        {"id": "customfield_10014", "name": "Epic Link", "custom": True, "schema": None},
        {"id": "summary", "name": "Summary", "custom": False, "schema": None},
    ]

    epic = client.get("/api/v1/jira/meta/epic-fields", params={"issue_type_id": "10000"})
    story = client.get("/api/v1/jira/meta/epic-fields", params={"issue_type_id": "10001"})
    unknown = client.get("/api/v1/jira/meta/epic-fields", params={"issue_type_id": "999"})

    assert [f["id"] for f in epic.json()] == ["customfield_10011"]
    assert [f["id"] for f in story.json()] == ["customfield_10014"]
    assert unknown.status_code == 404


def test_execute_warns_about_orphans_from_plan_flags(client):
    plan = _preview(client)["plan"]
    plan[1]["selected"] = False

    response = client.post("/api/v1/jira/hierarchy/execute", json={"config": CONFIG, "plan": plan})

    assert response.status_code == 200
    data = response.json()
    assert len(data["warnings"]) == 1
    assert "item-3" in data["warnings"][0]
    assert [c["node_id"] for c in data["created"]] == ["item-1"]
    assert [(e["node_id"], e["kind"]) for e in data["errors"]] == [("item-3", "skipped_missing_parent")]


def test_save_and_load_feature_folder(client, tmp_path):
    folder = tmp_path / "payment features"
    folder.mkdir()

    saved = client.post(
        "/api/v1/gherkin/feature-files/save",
        json={"gherkin_content": LOGIN, "directory": str(folder)}
    )
    loaded = client.post("/api/v1/gherkin/feature-folder", json={"directory": str(folder)})

    assert saved.status_code == 200
    assert saved.json()["saved"] == [str(folder / "login.feature")]
    assert loaded.status_code == 200
    data = loaded.json()
    assert data["folder_name"] == "payment features"
    assert data["files"] == ["login.feature"]

    preview = client.post(
        "/api/v1/jira/hierarchy/preview",
        json={"gherkin_content": data["gherkin_content"], "config": CONFIG, "folder_name": data["folder_name"]}
    )
    assert preview.json()["plan"][0]["display_name"] == "Payment Features"


def test_feature_folder_errors_are_400(client, tmp_path):
    missing = client.post("/api/v1/gherkin/feature-folder", json={"directory": str(tmp_path / "missing")})
    empty = client.post("/api/v1/gherkin/feature-folder", json={"directory": str(tmp_path)})
    no_features = client.post(
        "/api/v1/gherkin/feature-files/save",
        json={"gherkin_content": "notes only", "directory": str(tmp_path)}
    )

    assert missing.status_code == 400
    assert empty.status_code == 400
    assert no_features.status_code == 400
