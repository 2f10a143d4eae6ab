"""
Exception hierarchy for terraclient.

Every error raised by an operation derives from TerraclientError so
callers can catch the whole family at once.
"""

from typing import TYPE_CHECKING, Optional

from .constants import ERROR_MISSING_CONFIG, ERROR_MISSING_CREDENTIALS

if TYPE_CHECKING:
    from .core.terraform_runner import CommandResult


class TerraclientError(Exception):
    """Base class for all terraclient errors."""
    pass


class MissingCredentialsError(TerraclientError):
    """Raised when apply/destroy is called without credentials."""

    def __init__(self, message: str = ERROR_MISSING_CREDENTIALS):
        super().__init__(message)


class MissingConfigError(TerraclientError):
    """Raised when apply/destroy is called without configuration."""

    def __init__(self, message: str = ERROR_MISSING_CONFIG):
        super().__init__(message)


class WorkspaceError(TerraclientError):
    """Raised when a workspace directory or one of its files cannot be used."""
    pass


class TerraformCommandError(TerraclientError):
    """
    Raised when a terraform subcommand exits with a non-zero status.

    The captured output is kept on the exception so callers can look
    for the engine's own diagnostics (e.g. PLAN_FAILURE).
    """

    def __init__(self, result: "CommandResult", message: Optional[str] = None):
        self.result = result
        if message is None:
            message = f"terraform {result.command} failed with exit code {result.exit_code}"
            detail = result.stderr.strip() or result.stdout.strip()
            if detail:
                message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def stdout(self) -> str:
        return self.result.stdout

    @property
    def stderr(self) -> str:
        return self.result.stderr

    @property
    def exit_code(self) -> int:
        return self.result.exit_code

    @property
    def command(self) -> str:
        return self.result.command


class OutputDecodeError(TerraclientError):
    """Raised when `terraform output -json` cannot be decoded."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text
