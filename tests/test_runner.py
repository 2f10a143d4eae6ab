"""Tests for TerraformRunner. All mocked, no real Terraform needed."""

import os
import subprocess
import sys
import time
from unittest.mock import MagicMock, patch

import pytest

from terraclient.core.terraform_runner import (
    CommandResult,
    TerraformRunner,
    build_apply_args,
    build_destroy_args,
    build_environment,
    build_init_args,
    build_output_args,
    build_variable_args,
)
from terraclient.security.redactor import OutputRedactor
from terraclient.security.sanitizer import SecurityError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return TerraformRunner(terraform_binary="terraform")


def _make_mock_popen(stdout_lines, stderr_lines=None, returncode=0):
    """Create a mock Popen that yields the given lines."""
    mock_proc = MagicMock()
    mock_proc.stdout = iter([line + "\n" for line in stdout_lines])
    mock_proc.stderr = iter([line + "\n" for line in (stderr_lines or [])])
    mock_proc.returncode = returncode
    mock_proc.wait = MagicMock(return_value=returncode)
    mock_proc.terminate = MagicMock()
    return mock_proc


# ---------------------------------------------------------------------------
# Argument construction
# ---------------------------------------------------------------------------

class TestVariableArgs:
    def test_no_inputs(self):
        assert build_variable_args(None) == []
        assert build_variable_args({}) == []

    def test_single_variable(self):
        assert build_variable_args({"key": "value"}) == ["-var", "key=value"]

    def test_variables_sorted_by_name(self):
        args = build_variable_args({"zone": "b", "alpha": "1", "middle": "x"})
        assert args == ["-var", "alpha=1", "-var", "middle=x", "-var", "zone=b"]

    def test_value_passed_through_verbatim(self):
        # No shell is involved, so shell metacharacters are just data
        args = build_variable_args({"cmd": "a;b && $(c) 'd'"})
        assert args == ["-var", "cmd=a;b && $(c) 'd'"]

    def test_invalid_name_rejected(self):
        with pytest.raises(SecurityError):
            build_variable_args({"bad name!": "value"})

    def test_null_byte_rejected(self):
        with pytest.raises(SecurityError):
            build_variable_args({"name": "va\x00lue"})


class TestCommandArgs:
    def test_init_args(self):
        assert build_init_args("/work") == [
            "init", "-input=false", "-get=true", "-backend=false", "/work",
        ]

    def test_init_args_with_plugin_dir(self):
        assert build_init_args("/work", "/plugins") == [
            "init", "-input=false", "-get=true", "-backend=false",
            "-plugin-dir=/plugins", "/work",
        ]

    def test_apply_args(self):
        assert build_apply_args() == ["apply", "-auto-approve", "-input=false"]

    def test_apply_args_with_inputs(self):
        assert build_apply_args({"b": "2", "a": "1"}) == [
            "apply", "-auto-approve", "-input=false", "-var", "a=1", "-var", "b=2",
        ]

    def test_destroy_args(self):
        assert build_destroy_args({"key": "value"}) == [
            "destroy", "-force", "-var", "key=value",
        ]

    def test_output_args(self):
        assert build_output_args("/work/terraform.tfstate") == [
            "output", "-json", "-state=/work/terraform.tfstate",
        ]

    def test_build_command_appends_no_color(self, runner):
        cmd = runner.build_command(["init", "-input=false"])
        assert cmd == ["terraform", "init", "-input=false", "-no-color"]

    def test_build_command_rejects_null_bytes(self, runner):
        with pytest.raises(SecurityError):
            runner.build_command(["output", "-state=\x00bad"])


class TestEnvironment:
    def test_outputs_environment_is_path_and_home_only(self, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setenv("HOME", "/home/user")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "leak")
        assert build_environment() == {"PATH": "/usr/bin", "HOME": "/home/user"}

    def test_credentials_environment(self, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setenv("HOME", "/home/user")
        env = build_environment(b"/keys/sa.json")
        assert env == {
            "PATH": "/usr/bin",
            "HOME": "/home/user",
            "GOOGLE_APPLICATION_CREDENTIALS": "/keys/sa.json",
            "CHECKPOINT_DISABLE": "1",
        }

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX filesystem encoding")
    def test_non_utf8_credentials_pass_through(self):
        env = build_environment(b"\xff\xfekey")
        assert os.fsencode(env["GOOGLE_APPLICATION_CREDENTIALS"]) == b"\xff\xfekey"
        assert env["CHECKPOINT_DISABLE"] == "1"

    def test_custom_credentials_variable(self):
        env = build_environment("token", credentials_env_var="MY_CREDS")
        assert env["MY_CREDS"] == "token"
        assert "GOOGLE_APPLICATION_CREDENTIALS" not in env


# ---------------------------------------------------------------------------
# Subcommand wrappers
# ---------------------------------------------------------------------------

class TestSubcommands:
    def test_init_runs_in_directory(self, runner):
        ok = CommandResult(0, "", "", True, "init")
        with patch.object(runner, "run", return_value=ok) as mock_run:
            runner.init("/work", {"PATH": "/bin"}, plugin_dir="/plugins")
        directory, env, args = mock_run.call_args[0]
        assert directory == "/work"
        assert env == {"PATH": "/bin"}
        assert args[0] == "init"
        assert "-plugin-dir=/plugins" in args
        assert args[-1] == "/work"

    def test_apply_passes_inputs(self, runner):
        ok = CommandResult(0, "", "", True, "apply")
        with patch.object(runner, "run", return_value=ok) as mock_run:
            runner.apply("/work", {}, inputs={"key": "value"})
        args = mock_run.call_args[0][2]
        assert args == ["apply", "-auto-approve", "-input=false", "-var", "key=value"]

    def test_destroy_is_forced(self, runner):
        ok = CommandResult(0, "", "", True, "destroy")
        with patch.object(runner, "run", return_value=ok) as mock_run:
            runner.destroy("/work", {})
        assert mock_run.call_args[0][2] == ["destroy", "-force"]

    def test_output_targets_state_file(self, runner):
        ok = CommandResult(0, "{}", "", True, "output")
        with patch.object(runner, "run", return_value=ok) as mock_run:
            runner.output("/work", {}, "/work/terraform.tfstate")
        assert "-state=/work/terraform.tfstate" in mock_run.call_args[0][2]


# ---------------------------------------------------------------------------
# Execution tests (mocked subprocess)
# ---------------------------------------------------------------------------

class TestRun:
    def test_run_passes_cwd_env_and_no_shell(self, runner, tmp_path):
        mock_proc = _make_mock_popen(["ok"])
        env = {"PATH": "/bin", "HOME": "/home/user"}
        with patch("subprocess.Popen", return_value=mock_proc) as mock_popen:
            runner.run(str(tmp_path), env, ["apply", "-auto-approve"])
        cmd = mock_popen.call_args[0][0]
        kwargs = mock_popen.call_args[1]
        assert cmd == ["terraform", "apply", "-auto-approve", "-no-color"]
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"] == env
        assert kwargs["shell"] is False

    def test_run_without_directory_uses_scratch_dir(self, runner):
        mock_proc = _make_mock_popen([])
        with patch("subprocess.Popen", return_value=mock_proc) as mock_popen:
            result = runner.run("", {}, ["output", "-json"])
        scratch = mock_popen.call_args[1]["cwd"]
        assert scratch
        assert os.path.basename(scratch).startswith("terraform_client_workingdir")
        assert not os.path.exists(scratch)
        assert result.success is True

    def test_run_captures_output(self, runner, tmp_path):
        mock_proc = _make_mock_popen(["line1", "line2"], ["warning"])
        with patch("subprocess.Popen", return_value=mock_proc):
            result = runner.run(str(tmp_path), {}, ["init"])
        assert result.success is True
        assert result.exit_code == 0
        assert result.stdout == "line1\nline2"
        assert result.stderr == "warning"
        assert result.command == "init"

    def test_run_failure_keeps_both_buffers(self, runner, tmp_path):
        mock_proc = _make_mock_popen(
            ["There are some problems with the configuration"],
            ["Error: something"],
            returncode=1,
        )
        with patch("subprocess.Popen", return_value=mock_proc):
            result = runner.run(str(tmp_path), {}, ["apply"])
        assert result.success is False
        assert result.exit_code == 1
        assert "problems with the configuration" in result.stdout
        assert "Error: something" in result.stderr

    def test_run_redacts_sensitive(self, tmp_path):
        runner = TerraformRunner(redactor=OutputRedactor(["SUPERSECRET"]))
        mock_proc = _make_mock_popen(["token is SUPERSECRET here"], ["bad SUPERSECRET"])
        with patch("subprocess.Popen", return_value=mock_proc):
            result = runner.run(str(tmp_path), {}, ["init"])
        assert "SUPERSECRET" not in result.stdout
        assert "SUPERSECRET" not in result.stderr
        assert "[REDACTED]" in result.stdout

    def test_run_missing_binary(self, runner, tmp_path):
        with patch("subprocess.Popen", side_effect=FileNotFoundError("no terraform")):
            result = runner.run(str(tmp_path), {}, ["init"])
        assert result.success is False
        assert result.exit_code == -1
        assert "no terraform" in result.stderr

    @pytest.mark.skipif(sys.platform == "win32", reason="needs an executable script")
    def test_run_timeout_stops_silent_process(self, tmp_path):
        script = tmp_path / "terraform"
        script.write_text(f"#!{sys.executable}\nimport time\ntime.sleep(30)\n")
        script.chmod(0o755)
        runner = TerraformRunner(terraform_binary=str(script), timeout=1)

        started = time.monotonic()
        result = runner.run(str(tmp_path), {"PATH": os.environ.get("PATH", "")}, ["apply"])
        elapsed = time.monotonic() - started

        assert elapsed < 10
        assert result.success is False
        assert result.exit_code == -1
        assert "timed out" in result.stderr.lower()
        assert runner._process is None

    def test_run_timeout_kills_process_ignoring_terminate(self, tmp_path):
        mock_proc = _make_mock_popen([])
        mock_proc.wait = MagicMock(side_effect=[
            subprocess.TimeoutExpired(cmd="tf", timeout=1),
            subprocess.TimeoutExpired(cmd="tf", timeout=5),
            -9,
        ])
        runner = TerraformRunner(timeout=1)
        with patch("subprocess.Popen", return_value=mock_proc):
            result = runner.run(str(tmp_path), {}, ["apply"])
        assert result.exit_code == -1
        mock_proc.terminate.assert_called_once()
        mock_proc.kill.assert_called_once()

    def test_run_without_timeout_waits_indefinitely(self, runner, tmp_path):
        mock_proc = _make_mock_popen([])
        with patch("subprocess.Popen", return_value=mock_proc):
            runner.run(str(tmp_path), {}, ["apply"])
        mock_proc.wait.assert_called_once_with(timeout=None)


class TestCancel:
    def test_cancel_terminates_process(self, runner):
        mock_proc = MagicMock()
        runner._process = mock_proc
        runner.cancel()
        mock_proc.terminate.assert_called_once()

    def test_cancel_no_process(self, runner):
        # Should not raise
        runner.cancel()
