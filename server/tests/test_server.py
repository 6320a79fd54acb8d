"""
Tests for the HTTP host.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from sdml_lint.runner import LintRunner
from sdml_lint.table import RuleTable
from sdml_server.main import app, reset_runner
from sdml_server.settings import Settings

from helpers_rules import SOURCE, TYPE_NAME_CASE, TYPES_MISSING_BODIES


class TestServer:
    """Health, rule table and lint endpoints."""

    @pytest.fixture
    def runner(self, adapters, python_config):
        runner = LintRunner(table=RuleTable([TYPE_NAME_CASE]), config=python_config, adapters=adapters)
        reset_runner(runner)
        yield runner
        reset_runner(None)

    @pytest.fixture
    def client(self, runner):
        return TestClient(app)

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["rules"] == 1
        assert "python" in data["languages"]

    def test_get_rules(self, client):
        response = client.get("/rules")
        assert response.status_code == 200
        assert [r["id"] for r in response.json()["rules"]] == ["type-name-case"]

    def test_lint(self, client):
        response = client.post("/lint", json={"path": "example.py", "text": SOURCE, "version": 3})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "finished"
        assert data["version"] == 3
        assert [d["text"] for d in data["diagnostics"]] == ["person"]
        assert data["diagnostics"][0]["severity"] == "warning"

    def test_lint_unknown_language_fails(self, client):
        response = client.post("/lint", json={"path": "x.cob", "text": "", "language": "cobol"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["diagnostics"] == []
        assert "cobol" in data["error"]

    def test_lint_requires_text(self, client):
        assert client.post("/lint", json={"path": "x.py"}).status_code == 422

    def test_replace_rules(self, client, runner):
        body = {
            "rules": [TYPES_MISSING_BODIES.to_dict()],
            "rule_severities": {"types-missing-bodies": "error"},
        }
        response = client.put("/rules", json=body)
        assert response.status_code == 200
        assert response.json()["rules"][0]["severity"] == "error"
        assert runner.table.ids() == ["types-missing-bodies"]

        data = client.post("/lint", json={"path": "example.py", "text": SOURCE}).json()
        assert [d["rule_id"] for d in data["diagnostics"]] == ["types-missing-bodies"]

    def test_replace_rules_rejects_duplicates(self, client, runner):
        body = {"rules": [TYPE_NAME_CASE.to_dict(), TYPE_NAME_CASE.to_dict()]}
        response = client.put("/rules", json=body)
        assert response.status_code == 400
        assert "Duplicate" in response.json()["detail"]
        assert runner.table.ids() == ["type-name-case"]

    def test_replace_rules_rejects_bad_severity(self, client):
        body = {"rules": [dict(TYPE_NAME_CASE.to_dict(), severity="fatal")]}
        assert client.put("/rules", json=body).status_code == 422

    @pytest.mark.parametrize("alias", ["off", "none", "", "OFF", "warn"])
    def test_replace_rules_accepts_config_aliases(self, client, runner, alias):
        body = {"rules": [dict(TYPE_NAME_CASE.to_dict(), severity=alias)]}
        response = client.put("/rules", json=body)

        assert response.status_code == 200
        expected = "warning" if alias == "warn" else "disabled"
        assert response.json()["rules"][0]["severity"] == expected
        assert runner.table.get("type-name-case").severity.value == expected

    def test_replace_rules_disabled(self, client, runner):
        with patch("sdml_server.main.settings", Settings(allow_rule_updates=False)):
            response = client.put("/rules", json={"rules": []})
        assert response.status_code == 403
        assert len(runner.table) == 1
