"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from compass_bridge import __version__
from compass_bridge.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    @pytest.mark.unit
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    @pytest.mark.unit
    def test_info_reports_mock_mode(self, runner):
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert f"compass-bridge v{__version__}" in result.output
        assert "Figma API: mock data" in result.output
        assert "mock responses" in result.output

    @pytest.mark.unit
    def test_tools(self, runner):
        result = runner.invoke(cli, ["tools"])

        assert result.exit_code == 0
        assert "📦 figma" in result.output
        assert "• generate_code - Generate code from Figma design data" in result.output

    @pytest.mark.unit
    def test_resources_and_prompts(self, runner):
        resources = runner.invoke(cli, ["resources"])
        prompts = runner.invoke(cli, ["prompts"])

        assert "ai-decision://ab-tests/{status}" in resources.output
        assert "accessibility_audit" in prompts.output

    @pytest.mark.unit
    def test_call(self, runner):
        arguments = {
            "improvement_description": "Checkout",
            "implementation_cost": 10000,
            "current_metrics": {},
            "projected_improvement": {},
        }

        result = runner.invoke(
            cli,
            [
                "call",
                "ai-decision",
                "calculate_roi_for_ux_improvement",
                "--args",
                json.dumps(arguments),
            ],
        )

        assert result.exit_code == 0
        assert '"roi": 2300.0' in result.output

    @pytest.mark.unit
    def test_call_figma_mock(self, runner):
        result = runner.invoke(
            cli, ["call", "figma", "get_figma_file_structure", "-a", '{"file_id": "abc"}']
        )

        assert result.exit_code == 0
        assert "Mock Figma File abc" in result.output

    @pytest.mark.unit
    def test_call_unknown_tool(self, runner):
        result = runner.invoke(cli, ["call", "figma", "unknown_tool"])

        assert result.exit_code == 1
        assert "unknown_tool: Unknown tool: unknown_tool" in result.output

    @pytest.mark.unit
    def test_call_unknown_provider(self, runner):
        result = runner.invoke(cli, ["call", "ghost", "anything"])

        assert result.exit_code == 1
        assert "provider_not_found" in result.output

    @pytest.mark.unit
    def test_call_rejects_bad_json(self, runner):
        result = runner.invoke(cli, ["call", "figma", "x", "--args", "{nope"])

        assert result.exit_code == 2
        assert "Invalid JSON" in result.output

    @pytest.mark.unit
    def test_call_rejects_non_object(self, runner):
        result = runner.invoke(cli, ["call", "figma", "x", "--args", "[1, 2]"])

        assert result.exit_code == 2
        assert "Must be a JSON object" in result.output

    @pytest.mark.unit
    def test_read(self, runner):
        result = runner.invoke(cli, ["read", "codegen", "codegen://accessibility/AAA"])

        assert result.exit_code == 0
        assert '"min_contrast_ratio": 7.0' in result.output

    @pytest.mark.unit
    def test_read_unknown_provider(self, runner):
        result = runner.invoke(cli, ["read", "ghost", "ghost://x/y"])

        assert result.exit_code == 1
        assert "Provider 'ghost' not found" in result.output

    @pytest.mark.unit
    def test_ask_without_model(self, runner):
        result = runner.invoke(cli, ["ask", "What can you do?"])

        assert result.exit_code == 0
        assert "Based on your request" in result.output

    @pytest.mark.unit
    def test_status(self, runner):
        result = runner.invoke(cli, ["status"])

        assert result.exit_code == 0
        assert "3 providers registered" in result.output
        assert "• codegen (codegen v1.0.0): resources, tools, prompts" in result.output

    @pytest.mark.unit
    def test_serve_uses_settings(self, runner, monkeypatch):
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

        result = runner.invoke(cli, ["serve", "--port", "4010"])

        assert result.exit_code == 0
        assert calls == [{"host": "127.0.0.1", "port": 4010, "log_level": "info"}]
        assert "/mcp/{provider}" in result.output
