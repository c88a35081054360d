"""Tests for the CLI commands."""

import json
import subprocess
from pathlib import Path

import yaml
from typer.testing import CliRunner

from patchnorm.cli import app

runner = CliRunner()


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "patchnorm" in result.output


class TestInit:
    def test_creates_config(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_git_repo / ".patchnorm.toml").exists()

    def test_refuses_overwrite(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".patchnorm.toml").write_text("existing")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1


class TestDiffs:
    def test_json_output(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["diffs", "HEAD", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["files"] == 1
        assert data["diffs"][0]["new_path"] == "README.md"
        assert data["diffs"][0]["status"] == "added"

    def test_terminal_output(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["diffs", "--repo", str(tmp_git_repo)])
        assert result.exit_code == 0
        assert "README.md" in result.stdout

    def test_invalid_format(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["diffs", "--repo", str(tmp_git_repo), "--format", "xml"])
        assert result.exit_code == 2

    def test_unknown_commit(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["diffs", "nope", "--repo", str(tmp_git_repo)])
        assert result.exit_code == 2

    def test_not_a_repo(self, tmp_path: Path):
        result = runner.invoke(app, ["diffs", "--repo", str(tmp_path)])
        assert result.exit_code == 2


class TestStats:
    def test_yaml_output(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["stats", "--repo", str(tmp_git_repo), "-f", "yaml"])
        assert result.exit_code == 0
        assert "additions: 1" in result.stdout
        assert "total: 1" in result.stdout

    def test_zero_check(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["stats", "--repo", str(tmp_git_repo), "--zero-check"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "non-zero"

    def test_zero_check_honours_format(self, tmp_git_repo: Path):
        head = subprocess.run(
            ["git", "rev-parse", "HEAD"], cwd=tmp_git_repo, capture_output=True, text=True, check=True,
        ).stdout.strip()

        result = runner.invoke(
            app, ["stats", "--repo", str(tmp_git_repo), "--zero-check", "-f", "json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"id": head, "zero": False}

        result = runner.invoke(
            app, ["stats", "--repo", str(tmp_git_repo), "--zero-check", "-f", "yaml"]
        )
        assert result.exit_code == 0
        assert yaml.safe_load(result.stdout) == {"id": head, "zero": False}


class TestPatch:
    def test_bare_diff(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["patch", "--repo", str(tmp_git_repo)])
        assert result.exit_code == 0
        assert result.stdout.startswith("diff --git a/README.md b/README.md")
