"""Tests for the conductor command line."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from conductor.cli import cli
from conductor.cli.replication import _format_bytes

runner = CliRunner()


def _config_args(tmp_path: Path) -> list:
    return ["--config", str(tmp_path / "conductor.yaml")]


class TestPlanCommand:
    def test_json_output(self, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "replication", "plan",
                "--mine", "posts@newest-100",
                "--mine", "hubs@set",
                "--theirs", "post@all",
                "--followed", "2",
                "--json",
                *_config_args(tmp_path),
            ],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["estimated_messages"] == 930 + 200 + 200
        assert payload["estimated_bytes"] == 1330 * 600
        assert payload["ghostable_feeds"] == (1 + 2) + 2 * 2
        assert payload["my_rules"] == ["posts@newest-100", "hubs@set"]
        assert payload["their_rules"] == ["post@all"]
        assert payload["advisories"] == []

    def test_table_output(self, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["replication", "plan", "--mine", "posts@all", *_config_args(tmp_path)],
        )

        assert result.exit_code == 0, result.output
        assert "Replication plan" in result.output
        assert "Ghost span" in result.output

    def test_small_budget_reports_advisory(self, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "replication", "plan",
                "--theirs", "post@all",
                "--followed", "10",
                "--max-bytes", "10000",
                "--json",
                *_config_args(tmp_path),
            ],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["advisories"] == ["BUDGET_TOO_SMALL"]

    def test_invalid_rule_exits_with_error(self, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["replication", "plan", "--mine", "posts", *_config_args(tmp_path)],
        )

        assert result.exit_code == 1
        assert "INVALID_RULE" in result.output

    def test_budget_below_floor_exits_with_error(self, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["replication", "plan", "--max-bytes", "100", *_config_args(tmp_path)],
        )

        assert result.exit_code == 1
        assert "CONFIG_ERROR" in result.output

    def test_uses_configured_estimates(self, tmp_path: Path) -> None:
        path = tmp_path / "conductor.yaml"
        path.write_text(yaml.safe_dump({"estimates": {"avg_message_bytes": 1}}))

        result = runner.invoke(
            cli, ["replication", "plan", "--json", "--config", str(path)]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["estimated_bytes"] == 330

    def test_malformed_config_exits_with_error(self, tmp_path: Path) -> None:
        path = tmp_path / "conductor.yaml"
        path.write_text("budget: [unclosed\n")

        result = runner.invoke(cli, ["replication", "plan", "--config", str(path)])

        assert result.exit_code == 1
        assert not isinstance(result.exception, yaml.YAMLError)
        assert "CONFIG_ERROR" in result.output


class TestDemoCommand:
    def test_demo_replicates_then_collects(self) -> None:
        result = runner.invoke(cli, ["replication", "demo", "--posts", "2"])

        assert result.exit_code == 0, result.output
        assert "alice has A0, A1, B0, B1" in result.output
        assert "After unfollow + gc" in result.output
        assert result.output.rstrip().endswith("alice has A0, A1")


class TestConfigCommands:
    def test_init_show_validate(self, tmp_path: Path) -> None:
        args = _config_args(tmp_path)

        result = runner.invoke(cli, ["config", "init", *args])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "conductor.yaml").exists()

        result = runner.invoke(cli, ["config", "show", "--section", "budget", "--format", "json", *args])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["budget"]["min_max_bytes"] == 1024

        result = runner.invoke(cli, ["config", "validate", *args])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_init_refuses_to_overwrite(self, tmp_path: Path) -> None:
        args = _config_args(tmp_path)
        runner.invoke(cli, ["config", "init", *args])

        result = runner.invoke(cli, ["config", "init", *args])
        assert result.exit_code == 1
        assert "--force" in result.output

        result = runner.invoke(cli, ["config", "init", "--force", *args])
        assert result.exit_code == 0

    def test_set_value(self, tmp_path: Path) -> None:
        args = _config_args(tmp_path)
        result = runner.invoke(cli, ["config", "set", "ghosts.id_bytes", "64", *args])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load((tmp_path / "conductor.yaml").read_text())
        assert data["ghosts"]["id_bytes"] == 64

    def test_set_rejects_invalid_value(self, tmp_path: Path) -> None:
        args = _config_args(tmp_path)
        result = runner.invoke(cli, ["config", "set", "budget.min_max_bytes", "0", *args])

        assert result.exit_code == 1
        assert "Invalid value" in result.output
        assert not (tmp_path / "conductor.yaml").exists()

    def test_set_unknown_field(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["config", "set", "budget.nope", "1", *_config_args(tmp_path)])
        assert result.exit_code == 1
        assert "Unknown field" in result.output

    def test_show_unknown_section(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["config", "show", "--section", "nope", *_config_args(tmp_path)])
        assert result.exit_code == 1

    def test_show_and_set_report_malformed_file(self, tmp_path: Path) -> None:
        path = tmp_path / "conductor.yaml"
        path.write_text("budget: [unclosed\n")
        args = ["--config", str(path)]

        for command in (["config", "show", *args], ["config", "set", "ghosts.id_bytes", "64", *args]):
            result = runner.invoke(cli, command)
            assert result.exit_code == 1
            assert "Failed to load configuration" in result.output

    def test_validate_reports_errors(self, tmp_path: Path) -> None:
        path = tmp_path / "conductor.yaml"
        path.write_text(yaml.safe_dump({"version": 7}))

        result = runner.invoke(cli, ["config", "validate", "--config", str(path)])

        assert result.exit_code == 1
        assert "version" in result.output


def test_format_bytes():
    assert _format_bytes(512) == "512 B"
    assert _format_bytes(2048) == "2.0 KB"
    assert _format_bytes(64 * 1024 * 1024) == "64.0 MB"
