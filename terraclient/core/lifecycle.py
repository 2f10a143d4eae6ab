"""
Apply / destroy / outputs sequencing.

TerraformLifecycle turns a session's configuration, credentials, inputs
and state into the init -> apply|destroy and output command sequences,
each inside its own workspace. It never mutates the session: apply
returns the new state and the caller decides whether to keep it.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..config import Settings
from ..errors import MissingConfigError, MissingCredentialsError, TerraformCommandError
from ..security.redactor import OutputRedactor
from ..security.sanitizer import InputSanitizer
from .outputs import decode_outputs
from .terraform_parser import TerraformParser
from .terraform_runner import CommandResult, TerraformRunner, build_environment
from .workspace import WorkspaceManager

if TYPE_CHECKING:
    from .session import InfraSession

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of a successful apply or destroy."""
    stdout: str
    stderr: str
    state: Optional[bytes] = None  # new state after apply; None after destroy


class TerraformLifecycle:
    """
    Runs the terraform lifecycle for an InfraSession.

    Args:
        settings: Binary, credentials variable, workspace and timeout settings
        runner: Fixed runner to use for every command; by default a new
            runner is created per operation, redacting that session's
            credentials
        workspaces: Workspace allocator; by default built from settings
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        runner: Optional[TerraformRunner] = None,
        workspaces: Optional[WorkspaceManager] = None,
    ):
        self.settings = settings or Settings()
        self.runner = runner
        self.workspaces = workspaces or WorkspaceManager(
            prefix=self.settings.workspace_prefix,
            keep=self.settings.keep_workspaces,
        )

    def apply(self, session: "InfraSession") -> OperationResult:
        """
        Provision the session's configuration.

        Raises:
            MissingCredentialsError, MissingConfigError: Before any work is done
            TerraformCommandError: If init or apply fails
            WorkspaceError: If the workspace cannot be prepared or the
                resulting state cannot be read
        """
        self._check_preconditions(session)
        plugin_dir = self._plugin_dir(session)
        self._warn_on_inputs(session)
        runner = self._runner_for(session)
        env = self._environment(session)

        logger.info("Applying terraform configuration")
        with self.workspaces.prepare("apply", config=session.config) as workspace:
            self._check(runner.init(workspace.path, env, plugin_dir))
            result = self._check(runner.apply(workspace.path, env, session.inputs))
            state = workspace.read_state()

        logger.info(f"Apply finished, state is {len(state)} bytes")
        return OperationResult(stdout=result.stdout, stderr=result.stderr, state=state)

    def destroy(self, session: "InfraSession") -> OperationResult:
        """
        Tear down the infrastructure recorded in the session's state.

        The state is not read back afterwards, so the session keeps the
        pre-destroy snapshot.

        Raises:
            MissingCredentialsError, MissingConfigError: Before any work is done
            TerraformCommandError: If init or destroy fails
            WorkspaceError: If the workspace cannot be prepared
        """
        self._check_preconditions(session)
        plugin_dir = self._plugin_dir(session)
        self._warn_on_inputs(session)
        runner = self._runner_for(session)
        env = self._environment(session)

        if not session.state:
            logger.warning("Destroying with empty state; terraform has nothing to destroy from")

        logger.info("Destroying terraform infrastructure")
        with self.workspaces.prepare(
            "destroy", config=session.config, state=session.state
        ) as workspace:
            self._check(runner.init(workspace.path, env, plugin_dir))
            result = self._check(runner.destroy(workspace.path, env, session.inputs))

        logger.info("Destroy finished")
        return OperationResult(stdout=result.stdout, stderr=result.stderr, state=None)

    def outputs(self, session: "InfraSession") -> Dict[str, Any]:
        """
        Read output values from the session's state.

        Only the state is needed: no configuration is written and init
        is not run.

        Raises:
            TerraformCommandError: If terraform output fails
            OutputDecodeError: If its JSON cannot be decoded
            WorkspaceError: If the workspace cannot be prepared
        """
        runner = self._runner_for(session)
        env = build_environment()

        with self.workspaces.prepare("output", state=session.state) as workspace:
            result = self._check(runner.output(workspace.path, env, workspace.state_file))

        outputs = decode_outputs(result.stdout)
        logger.debug(f"Read {len(outputs)} outputs")
        return outputs

    @staticmethod
    def _check_preconditions(session: "InfraSession"):
        if not session.credentials:
            raise MissingCredentialsError()
        if not session.config:
            raise MissingConfigError()

    @staticmethod
    def _plugin_dir(session: "InfraSession") -> Optional[str]:
        if not session.plugin_dir:
            return None
        return InputSanitizer.sanitize_path(session.plugin_dir)

    @staticmethod
    def _warn_on_inputs(session: "InfraSession"):
        parser = TerraformParser(session.config)
        declared = set(parser.variable_names())
        if not declared:
            return
        inputs = set(session.inputs or {})
        for name in sorted(inputs - declared):
            logger.warning(f"Input '{name}' has no matching variable in the configuration")
        for name in sorted(set(parser.required_variable_names()) - inputs):
            logger.warning(f"Variable '{name}' has no default and no input; terraform will reject it")

    def _environment(self, session: "InfraSession") -> Dict[str, str]:
        return build_environment(session.credentials, self.settings.credentials_env_var)

    def _runner_for(self, session: "InfraSession") -> TerraformRunner:
        if self.runner is not None:
            return self.runner
        return TerraformRunner(
            terraform_binary=self.settings.terraform_binary,
            timeout=self.settings.timeout,
            redactor=OutputRedactor([session.credentials]),
        )

    @staticmethod
    def _check(result: CommandResult) -> CommandResult:
        if not result.success:
            logger.error(f"terraform {result.command} failed with exit code {result.exit_code}")
            raise TerraformCommandError(result)
        return result
