"""Tests for the command-line interface."""

import json
import subprocess

import pytest
import yaml
from click.testing import CliRunner

from railways import routes_task
from railways.cli import main

REPORT = """\
Prefix Verb URI Pattern Controller#Action
 users GET  /users(.:format) users#index
       POST /users(.:format) users#create
 posts GET  /posts(.:format) posts#index
 sidekiq_web /sidekiq Sidekiq::Web
"""

USERS_CONTROLLER = """
class UsersController < ApplicationController
  def index
  end

  private

  def create
  end
end
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def report(tmp_path):
    path = tmp_path / "routes.txt"
    path.write_text(REPORT)
    return str(path)


@pytest.fixture
def app_root(tmp_path):
    controllers = tmp_path / "app" / "controllers"
    controllers.mkdir(parents=True)
    (controllers / "users_controller.rb").write_text(USERS_CONTROLLER)
    return str(tmp_path)


class TestTable:
    def test_prints_routes_and_engines(self, runner, report):
        result = runner.invoke(main, [report])
        assert result.exit_code == 0, result.output
        assert "Mounted engines:" in result.output
        assert "Sidekiq::Web at /sidekiq" in result.output
        assert "Total routes:      4" in result.output

    def test_error_reported(self, runner, report, tmp_path):
        stderr = tmp_path / "stderr.txt"
        stderr.write_text("** Invoke routes\nDon't know how to build task 'routes'\n")
        result = runner.invoke(main, [report, "--stderr", str(stderr)])
        assert result.exit_code == 1
        assert "Routes task not found" in result.output

    def test_reads_stdin(self, runner):
        result = runner.invoke(main, ["-"], input="GET /health health#check\n")
        assert result.exit_code == 0
        assert "Total routes:      1" in result.output

    def test_requires_source(self, runner):
        result = runner.invoke(main, [])
        assert result.exit_code == 2


class TestExport:
    def test_yaml_to_stdout(self, runner, report):
        result = runner.invoke(main, [report, "--format", "yaml", "--filter", "posts"])
        assert result.exit_code == 0, result.output
        doc = yaml.safe_load(result.output)
        assert [r["controller"] for r in doc["routes"]] == ["posts"]

    def test_json_with_resolution(self, runner, report, app_root, tmp_path):
        out = tmp_path / "routes.json"
        result = runner.invoke(main, [report, "--app", app_root,
                                      "--format", "json", "-o", str(out)])
        assert result.exit_code == 0, result.output
        doc = json.loads(out.read_text())
        statuses = [r.get("resolution", {}).get("status") for r in doc["routes"]]
        assert statuses == ["public", "protected_or_private", "unresolved", None]
        assert doc["engines"] == [{"name": "Sidekiq::Web", "mount_path": "/sidekiq"}]


class TestRun:
    def test_runs_routes_task(self, runner, app_root, tmp_path, monkeypatch):
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            return subprocess.CompletedProcess(cmd, 0, stdout=REPORT, stderr="")

        monkeypatch.setattr(routes_task.subprocess, "run", fake_run)
        out = tmp_path / "routes.yaml"
        result = runner.invoke(main, ["--run", app_root, "--task", "app:routes",
                                      "--format", "yaml", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert seen["cmd"][-1] == "app:routes"
        doc = yaml.safe_load(out.read_text())
        assert doc["routes"][0]["resolution"]["status"] == "public"

    def test_task_env_var(self, runner, app_root, monkeypatch):
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        monkeypatch.setattr(routes_task.subprocess, "run", fake_run)
        monkeypatch.setenv("RAILWAYS_TASK", "custom_routes")
        result = runner.invoke(main, ["--run", app_root])
        assert result.exit_code == 0, result.output
        assert seen["cmd"][-1] == "custom_routes"

    def test_launch_failure(self, runner, app_root, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(routes_task.subprocess, "run", fake_run)
        result = runner.invoke(main, ["--run", app_root])
        assert result.exit_code == 1
        assert "not installed" in result.output
