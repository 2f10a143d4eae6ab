"""
Terraform command execution.

This module builds terraform argument lists (init, apply, destroy,
output) and runs them synchronously with a caller-supplied environment,
capturing stdout and stderr separately with sensitive values redacted.
"""

import logging
import os
import shutil
import subprocess
import tempfile
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union

from ..constants import CHECKPOINT_DISABLE, NO_COLOR_FLAG
from ..security.sanitizer import InputSanitizer, SecurityError
from ..security.redactor import OutputRedactor
from ..utils import subprocess_creation_flags

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a Terraform command execution."""
    exit_code: int
    stdout: str
    stderr: str
    success: bool
    command: str  # operation name (e.g. "init", "apply")


def build_environment(
    credentials: Union[bytes, str, None] = None,
    credentials_env_var: str = "GOOGLE_APPLICATION_CREDENTIALS",
) -> Dict[str, str]:
    """
    Build the scoped environment for a terraform process.

    Only PATH and HOME are forwarded from the calling process. When
    credentials are given they are exported under credentials_env_var
    and the checkpoint (telemetry) service is disabled.

    Credentials are opaque bytes. They are decoded with os.fsdecode, so
    Popen hands the process exactly the original bytes.
    """
    env = {
        "PATH": os.environ.get("PATH", ""),
        "HOME": os.environ.get("HOME", ""),
    }
    if credentials:
        if isinstance(credentials, bytes):
            credentials = os.fsdecode(credentials)
        env[credentials_env_var] = credentials
        env[CHECKPOINT_DISABLE] = "1"
    return env


def build_variable_args(inputs: Optional[Mapping[str, str]]) -> List[str]:
    """
    Build -var arguments, sorted by variable name.

    Each variable becomes two list entries: "-var" and "name=value".
    """
    args: List[str] = []
    if not inputs:
        return args
    for name in sorted(inputs):
        InputSanitizer.sanitize_variable_name(name)
        value = inputs[name]
        arg = f"{name}={'' if value is None else value}"
        if not InputSanitizer.is_safe_command_arg(arg):
            raise SecurityError(f"Unsafe variable argument: {name}")
        args.extend(["-var", arg])
    return args


def build_init_args(workdir: str, plugin_dir: Optional[str] = None) -> List[str]:
    args = ["init", "-input=false", "-get=true", "-backend=false"]
    if plugin_dir:
        args.append(f"-plugin-dir={plugin_dir}")
    args.append(workdir)
    return args


def build_apply_args(inputs: Optional[Mapping[str, str]] = None) -> List[str]:
    return ["apply", "-auto-approve", "-input=false"] + build_variable_args(inputs)


def build_destroy_args(inputs: Optional[Mapping[str, str]] = None) -> List[str]:
    return ["destroy", "-force"] + build_variable_args(inputs)


def build_output_args(state_file: str) -> List[str]:
    return ["output", "-json", f"-state={state_file}"]


class TerraformRunner:
    """
    Executes Terraform commands.

    - shell=False always; arguments are passed as a list
    - The process sees only the environment it is given
    - -no-color is appended to every command
    - stdout and stderr are captured separately and redacted
    - No timeout unless one is configured
    """

    def __init__(
        self,
        terraform_binary: str = "terraform",
        timeout: Optional[float] = None,
        redactor: Optional[OutputRedactor] = None,
    ):
        self.terraform_binary = terraform_binary
        self._timeout = timeout
        self._redactor = redactor or OutputRedactor()
        self._process: Optional[subprocess.Popen] = None

    def set_redactor(self, redactor: OutputRedactor):
        """Configure output redaction for sensitive values."""
        self._redactor = redactor

    def cancel(self):
        """Terminate any running subprocess."""
        if self._process is not None:
            try:
                self._process.terminate()
            except OSError:
                pass

    def init(
        self,
        directory: str,
        environment: Dict[str, str],
        plugin_dir: Optional[str] = None,
    ) -> CommandResult:
        """Run terraform init against directory."""
        return self.run(directory, environment, build_init_args(directory, plugin_dir))

    def apply(
        self,
        directory: str,
        environment: Dict[str, str],
        inputs: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run terraform apply with auto-approval."""
        return self.run(directory, environment, build_apply_args(inputs))

    def destroy(
        self,
        directory: str,
        environment: Dict[str, str],
        inputs: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run terraform destroy without confirmation."""
        return self.run(directory, environment, build_destroy_args(inputs))

    def output(
        self,
        directory: str,
        environment: Dict[str, str],
        state_file: str,
    ) -> CommandResult:
        """Run terraform output -json against a state file."""
        return self.run(directory, environment, build_output_args(state_file))

    def build_command(self, args: List[str]) -> List[str]:
        """Construct [binary, *args, -no-color] and validate every entry."""
        cmd = [self.terraform_binary] + list(args) + [NO_COLOR_FLAG]
        for arg in cmd:
            if not InputSanitizer.is_safe_command_arg(arg):
                raise SecurityError(f"Unsafe command argument: {arg[:80]!r}")
        return cmd

    def run(
        self,
        directory: Optional[str],
        environment: Dict[str, str],
        args: List[str],
    ) -> CommandResult:
        """
        Run terraform synchronously.

        Terraform always needs a working directory, so when directory is
        empty a temporary one is allocated for the call and removed
        afterwards.

        Args:
            directory: Working directory for the process
            environment: Complete environment for the process
            args: Subcommand and flags, without the binary

        Returns:
            CommandResult with both output buffers, whatever the exit status
        """
        cmd = self.build_command(args)
        operation = args[0] if args else ""

        scratch_dir = None
        if not directory:
            scratch_dir = tempfile.mkdtemp(prefix="terraform_client_workingdir_")
            directory = scratch_dir

        logger.debug(f"Running {' '.join(cmd)} in {directory}")
        try:
            return self._execute(cmd, operation, directory, environment)
        finally:
            if scratch_dir is not None:
                shutil.rmtree(scratch_dir, ignore_errors=True)

    def _execute(
        self,
        cmd: List[str],
        operation: str,
        directory: str,
        environment: Dict[str, str],
    ) -> CommandResult:
        """
        Execute a command and collect its output.

        Both pipes are drained on reader threads so neither can fill up
        and block the process, and so the timeout applies even while
        the process is silent.
        """
        stdout_lines: List[str] = []
        stderr_lines: List[str] = []

        try:
            self._process = subprocess.Popen(
                cmd,
                cwd=directory,
                env=environment,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                creationflags=subprocess_creation_flags(),
            )
        except OSError as e:
            logger.error(f"Failed to start {self.terraform_binary}: {e}")
            return CommandResult(
                exit_code=-1,
                stdout="",
                stderr=str(e),
                success=False,
                command=operation,
            )

        process = self._process

        def _drain(stream, lines: List[str]):
            for line in stream:
                lines.append(self._redactor.redact(line.rstrip("\n")))

        readers = [
            threading.Thread(target=_drain, args=(process.stdout, stdout_lines), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, stderr_lines), daemon=True),
        ]
        for reader in readers:
            reader.start()

        try:
            process.wait(timeout=self._timeout)
            exit_code = process.returncode

        except subprocess.TimeoutExpired:
            logger.error(f"terraform {operation} timed out after {self._timeout}s")
            self._stop(process)
            self._join_readers(readers, timeout=5)
            return CommandResult(
                exit_code=-1,
                stdout="\n".join(stdout_lines),
                stderr="Command timed out",
                success=False,
                command=operation,
            )
        finally:
            self._process = None

        self._join_readers(readers)

        if exit_code != 0:
            logger.debug(f"terraform {operation} exited with {exit_code}")

        return CommandResult(
            exit_code=exit_code,
            stdout="\n".join(stdout_lines),
            stderr="\n".join(stderr_lines),
            success=exit_code == 0,
            command=operation,
        )

    @staticmethod
    def _stop(process: subprocess.Popen):
        """Terminate a process, killing it if it does not exit promptly."""
        try:
            process.terminate()
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        except OSError:
            pass

    @staticmethod
    def _join_readers(readers: List[threading.Thread], timeout: Optional[float] = None):
        # After a timeout a grandchild may still hold the pipes open
        for reader in readers:
            reader.join(timeout=timeout)
