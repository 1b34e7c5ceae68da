"""Tests for the /push HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from pushgate.api.push import get_audit_log
from pushgate.core.audit import AuditLog
from pushgate.core.config import get_settings
from pushgate.main import app

BODY = {
    "repo_name": "demo-repo",
    "branch": "refs/heads/main",
    "commit_from": "1" * 40,
    "commit_to": "2" * 40,
}


class _BrokenRedis:
    def rpush(self, *args):
        raise ConnectionError("redis down")

    ltrim = lrange = rpush


@pytest.fixture
def client(settings, fake_redis):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_audit_log] = lambda: AuditLog(fake_redis, keep_last=100)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestEvaluatePush:
    def test_approved_push_is_audited(self, client, make_hook):
        make_hook("exit 0")
        r = client.post("/push/evaluate", json=BODY)
        assert r.status_code == 200
        data = r.json()
        assert data["approval_state"] == "AUTO_APPROVED"
        assert data["error"] is False
        assert data["steps"][0]["name"] == "executeExternalPreReceiveHook"

        audit = client.get("/push/audit/demo-repo")
        assert audit.status_code == 200
        assert [item["id"] for item in audit.json()] == [data["id"]]

    def test_no_hook_waits_for_review(self, client):
        r = client.post("/push/evaluate", json=BODY)
        assert r.status_code == 200
        assert r.json()["approval_state"] == "PENDING_MANUAL_REVIEW"

    def test_hook_malfunction_is_reported_in_steps(self, client, make_hook):
        make_hook('echo "policy file missing"\nexit 42')
        r = client.post("/push/evaluate", json=BODY)
        assert r.status_code == 200
        data = r.json()
        assert data["approval_state"] == "ERRORED"
        assert data["error"] is True
        assert data["steps"][-1]["error_message"] == "policy file missing"

    def test_unsafe_branch_is_step_error(self, client, make_hook):
        make_hook("exit 0")
        r = client.post("/push/evaluate", json={**BODY, "branch": "main; rm -rf /"})
        assert r.status_code == 200
        data = r.json()
        assert data["error"] is True
        assert data["approval_state"] == "UNDETERMINED"

    @pytest.mark.parametrize("field", ["repo_name", "branch", "commit_from", "commit_to"])
    def test_missing_field(self, client, field):
        body = {k: v for k, v in BODY.items() if k != field}
        assert client.post("/push/evaluate", json=body).status_code == 422

    def test_blank_field(self, client):
        assert client.post("/push/evaluate", json={**BODY, "commit_to": "  "}).status_code == 422

    @pytest.mark.parametrize("repo_name", ["../etc", "a/b", ".."])
    def test_repo_name_cannot_escape_proxy_path(self, client, repo_name):
        assert client.post("/push/evaluate", json={**BODY, "repo_name": repo_name}).status_code == 422

    def test_audit_failure_does_not_fail_push(self, settings, make_hook):
        make_hook("exit 1")
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_audit_log] = lambda: AuditLog(_BrokenRedis(), keep_last=10)
        try:
            r = TestClient(app).post("/push/evaluate", json=BODY)
        finally:
            app.dependency_overrides.clear()
        assert r.status_code == 200
        assert r.json()["approval_state"] == "AUTO_REJECTED"


class TestAuditEndpoint:
    def test_limit_bounds(self, client):
        assert client.get("/push/audit/demo-repo", params={"limit": 0}).status_code == 422
        assert client.get("/push/audit/demo-repo", params={"limit": 201}).status_code == 422

    def test_empty(self, client):
        r = client.get("/push/audit/unknown")
        assert r.status_code == 200
        assert r.json() == []

    def test_redis_down_is_503(self):
        app.dependency_overrides[get_audit_log] = lambda: AuditLog(_BrokenRedis(), keep_last=10)
        try:
            r = TestClient(app).get("/push/audit/demo-repo")
        finally:
            app.dependency_overrides.clear()
        assert r.status_code == 503


def test_health():
    assert TestClient(app).get("/health").json() == {"ok": True}
