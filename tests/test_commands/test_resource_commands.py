"""CLI tests for tags, credentials, variables, audit, and ping."""

from __future__ import annotations

import httpx

from n8nctl.exit_codes import EXIT_AUTH_FAILURE, EXIT_GENERIC_FAILURE


class TestTags:
    def test_list(self, fake_server, run_cli) -> None:
        fake_server.add("GET", "tags", {"data": [{"id": "t1", "name": "prod"}]})
        result = run_cli("tags", "list")
        assert result.exit_code == 0
        assert "t1\tprod" in result.output
        assert "Total: 1" in result.output

    def test_create(self, fake_server, run_cli) -> None:
        fake_server.add("POST", "tags", {"id": "t2", "name": "staging"})
        result = run_cli("tags", "create", "staging")
        assert result.exit_code == 0
        assert "Created: staging (t2)" in result.output
        assert fake_server.body(fake_server.calls("POST", "tags")[0]) == {"name": "staging"}


class TestCredentials:
    def test_list(self, fake_server, run_cli) -> None:
        fake_server.add("GET", "credentials", [{"id": "c1", "name": "Slack", "type": "slackApi"}])
        result = run_cli("credentials", "list")
        assert result.exit_code == 0
        assert "c1\tSlack\tslackApi" in result.output

    def test_method_not_allowed_is_a_notice(self, fake_server, run_cli) -> None:
        fake_server.add(
            "GET", "credentials", httpx.Response(405, json={"message": "GET method not allowed"})
        )
        result = run_cli("credentials", "list")
        assert result.exit_code == 0
        assert "Credentials API not available on this n8n instance (405)." in result.output


class TestVariables:
    def test_premium_feature_is_a_notice(self, fake_server, run_cli) -> None:
        fake_server.add(
            "GET",
            "variables",
            httpx.Response(403, json={"message": "Your license does not allow for feat:variables."}),
        )
        result = run_cli("variables", "list")
        assert result.exit_code == 0
        assert "Variables API not available (premium feature)." in result.output

    def test_other_403_is_an_error(self, fake_server, run_cli) -> None:
        fake_server.add("GET", "variables", httpx.Response(403, json={"message": "Forbidden"}))
        result = run_cli("variables", "list")
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "Access denied (403)." in result.output

    def test_empty(self, fake_server, run_cli) -> None:
        fake_server.add("GET", "variables", {"data": []})
        result = run_cli("variables", "list")
        assert "No variables found." in result.output


class TestAudit:
    def test_options_sent(self, fake_server, run_cli) -> None:
        fake_server.add("POST", "audit", {"Credentials Risk Report": {"risk": "credentials"}})
        result = run_cli("audit", "--days-abandoned", "30", "-c", "credentials", "-c", "nodes")
        assert result.exit_code == 0
        assert "Credentials Risk Report" in result.output
        assert fake_server.body(fake_server.calls("POST", "audit")[0]) == {
            "additionalOptions": {"daysAbandonedWorkflow": 30, "categories": ["credentials", "nodes"]}
        }

    def test_no_options(self, fake_server, run_cli) -> None:
        fake_server.add("POST", "audit", {})
        run_cli("audit")
        assert fake_server.body(fake_server.calls("POST", "audit")[0]) == {}


class TestPing:
    def test_reachable(self, fake_server, run_cli) -> None:
        fake_server.add("GET", "workflows", {"data": []})
        result = run_cli("ping")
        assert result.exit_code == 0
        assert "n8n reachable, API key valid" in result.output

    def test_unreachable(self, fake_server, run_cli) -> None:
        fake_server.add("GET", "workflows", httpx.Response(401, json={"message": "unauthorized"}))
        result = run_cli("ping")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Error: n8n not reachable or API key invalid" in result.output
