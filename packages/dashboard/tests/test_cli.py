"""Tests for issuedeck.cli"""
import os

import pytest
from typer.testing import CliRunner

import issuedeck.app
import issuedeck.cli as cli
from issuedeck.auth_storage import AuthStorage
from issuedeck.config import VERSION

runner = CliRunner()


@pytest.fixture
def fake_run(monkeypatch):
    """Replace the dashboard loop and logging setup; returns the captured configs."""
    seen = []

    async def run_app(config, terminal=None, client=None):
        seen.append(config)
        return 0

    monkeypatch.setattr(issuedeck.app, "run_app", run_app)
    monkeypatch.setattr(cli, "configure_logging", lambda log_dir, level: None)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    return seen


class TestCli:
    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output

    def test_print_log_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ISSUEDECK_DIR", str(tmp_path))
        result = runner.invoke(cli.app, ["--print-log-dir"])
        assert result.exit_code == 0
        assert result.output.strip() == os.path.join(str(tmp_path), "logs")

    def test_set_token(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ISSUEDECK_DIR", str(tmp_path))
        result = runner.invoke(cli.app, ["--set-token", "ghp_abc"])
        assert result.exit_code == 0
        assert "Token saved" in result.output
        assert AuthStorage().get_token() == "ghp_abc"

    def test_empty_token(self):
        result = runner.invoke(cli.app, ["--set-token", "  "])
        assert result.exit_code == 2

    def test_repo_is_required(self, fake_run):
        result = runner.invoke(cli.app, ["octo"])
        assert result.exit_code == 2
        assert "OWNER and REPO are required" in result.output
        assert fake_run == []

    def test_bad_log_level(self, fake_run):
        result = runner.invoke(cli.app, ["octo", "demo", "--log-level", "loud"])
        assert result.exit_code == 2
        assert fake_run == []

    def test_invalid_repo_name(self, fake_run):
        result = runner.invoke(cli.app, ["octo", "a/b"])
        assert result.exit_code == 2
        assert "Invalid arguments" in result.output

    def test_runs_dashboard_anonymously(self, fake_run):
        result = runner.invoke(cli.app, ["octo", "demo", "-l", "debug"])
        assert result.exit_code == 0
        assert "No GitHub token found" in result.output
        [config] = fake_run
        assert config.full_name == "octo/demo"
        assert config.log_level == "debug"
        assert config.token is None

    def test_uses_saved_token(self, fake_run):
        AuthStorage().set_token("ghp_saved")
        result = runner.invoke(cli.app, ["octo", "demo"])
        assert result.exit_code == 0
        assert "No GitHub token found" not in result.output
        assert fake_run[0].token == "ghp_saved"
