"""
Tests for the command line entry point.
"""

import json

from unittest.mock import AsyncMock, patch
import main


def write_scenario(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps({
        "name": "title",
        "start_url": "https://example.com",
        "steps": [{"action": "get_text", "args": {"selector": "h1"}}],
    }), encoding="utf-8")
    return str(path)


def test_parser_flags():
    args = main.build_parser().parse_args(["s.json", "--debug", "--no-proxy"])

    assert args.scenario == "s.json"
    assert args.debug is True
    assert args.no_proxy is True


def test_missing_scenario_file(tmp_path):
    assert main.main([str(tmp_path / "missing.json")]) == 2


def test_run_success_prints_result(tmp_path, capsys):
    with patch("main.ScenarioRunner") as runner_cls:
        runner_cls.return_value.run = AsyncMock(
            return_value={"success": True, "scenario": "title", "outputs": {"get_text_0": "Example"}}
        )

        exit_code = main.main([write_scenario(tmp_path), "--no-proxy"])

    assert exit_code == 0
    config = runner_cls.call_args.args[0]
    assert config.proxy_mode is False
    assert json.loads(capsys.readouterr().out)["outputs"]["get_text_0"] == "Example"


def test_run_failure_exit_code(tmp_path):
    with patch("main.ScenarioRunner") as runner_cls:
        runner_cls.return_value.run = AsyncMock(
            return_value={"success": False, "scenario": "title", "error": {"kind": "NavigationFailed"}}
        )

        assert main.main([write_scenario(tmp_path)]) == 1


def test_malformed_step_exit_code(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps({
        "name": "broken",
        "start_url": "https://example.com",
        "steps": [{"action": "goto", "args": None}],
    }), encoding="utf-8")

    assert main.main([str(path)]) == 2


def test_top_level_array_exit_code(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps([{"action": "goto"}]), encoding="utf-8")

    assert main.main([str(path)]) == 2


def test_invalid_proxy_port_exit_code(tmp_path, monkeypatch):
    monkeypatch.setenv("PUPPET_PROXY_PORT", "not-a-port")

    with patch("main.ScenarioRunner") as runner_cls:
        assert main.main([write_scenario(tmp_path)]) == 2

    runner_cls.assert_not_called()
