"""
Ephemeral workspace directories for terraform invocations.

Every operation gets its own freshly created directory holding at most
terraform.tf and terraform.tfstate. Directories are removed when the
operation finishes unless the manager is told to keep them.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ..constants import CONFIG_FILENAME, STATE_FILENAME
from ..errors import WorkspaceError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "terraform_client_workingdir"


@dataclass
class Workspace:
    """A single-use working directory."""
    path: str
    purpose: str

    @property
    def config_file(self) -> str:
        return os.path.join(self.path, CONFIG_FILENAME)

    @property
    def state_file(self) -> str:
        return os.path.join(self.path, STATE_FILENAME)

    def write_config(self, config: bytes):
        self._write(self.config_file, config)

    def write_state(self, state: bytes):
        self._write(self.state_file, state)

    def read_state(self) -> bytes:
        """
        Read the state file terraform left in this workspace.

        Raises:
            WorkspaceError: If the file is missing or unreadable
        """
        try:
            with open(self.state_file, "rb") as f:
                return f.read()
        except OSError as e:
            raise WorkspaceError(f"Failed to read state file {self.state_file}: {e}") from e

    @staticmethod
    def _write(path: str, data: bytes):
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise WorkspaceError(f"Failed to write {path}: {e}") from e


class WorkspaceManager:
    """
    Allocates workspaces for TerraformLifecycle.

    Directories come from tempfile.mkdtemp, which is safe to call from
    several threads at once, so independent sessions never share one.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        keep: bool = False,
        base_dir: Optional[str] = None,
    ):
        self.prefix = prefix
        self.keep = keep
        self.base_dir = base_dir

    def create(self, purpose: str) -> Workspace:
        """
        Create an empty workspace directory.

        Raises:
            WorkspaceError: If the directory cannot be created
        """
        try:
            path = tempfile.mkdtemp(prefix=f"{self.prefix}_{purpose}_", dir=self.base_dir)
        except OSError as e:
            raise WorkspaceError(f"Failed to create workspace directory: {e}") from e
        logger.debug(f"Created {purpose} workspace: {path}")
        return Workspace(path=os.path.abspath(path), purpose=purpose)

    @contextmanager
    def prepare(
        self,
        purpose: str,
        config: Optional[bytes] = None,
        state: Optional[bytes] = None,
    ) -> Iterator[Workspace]:
        """
        Create a workspace, materialize config/state into it, and yield it.

        A buffer that is None is not written at all; an empty buffer is
        written as an empty file. The directory is removed on exit,
        including when the body raises, unless keep is set.

        Args:
            purpose: Short label used in the directory name ("apply", ...)
            config: Contents for terraform.tf
            state: Contents for terraform.tfstate

        Raises:
            WorkspaceError: If the directory or a file cannot be written
        """
        workspace = self.create(purpose)
        try:
            if config is not None:
                workspace.write_config(config)
            if state is not None:
                workspace.write_state(state)
            yield workspace
        finally:
            self.release(workspace)

    def release(self, workspace: Workspace):
        """Remove a workspace directory, or log where it was kept."""
        if self.keep:
            logger.info(f"Keeping {workspace.purpose} workspace: {workspace.path}")
            return
        shutil.rmtree(workspace.path, ignore_errors=True)
        logger.debug(f"Removed {workspace.purpose} workspace: {workspace.path}")
