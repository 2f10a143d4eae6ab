"""
terraclient - drive Terraform apply, destroy and output reads as library calls.
"""

from .constants import (
    APPLY_SUCCESS,
    DESTROY_SUCCESS,
    ERROR_MISSING_CONFIG,
    ERROR_MISSING_CREDENTIALS,
    PLAN_FAILURE,
)
from .errors import (
    MissingConfigError,
    MissingCredentialsError,
    OutputDecodeError,
    TerraclientError,
    TerraformCommandError,
    WorkspaceError,
)
from .core import InfraSession, TerraformLifecycle

__version__ = "1.0.0"

__all__ = [
    "InfraSession",
    "TerraformLifecycle",
    "TerraclientError",
    "MissingCredentialsError",
    "MissingConfigError",
    "WorkspaceError",
    "TerraformCommandError",
    "OutputDecodeError",
    "APPLY_SUCCESS",
    "DESTROY_SUCCESS",
    "PLAN_FAILURE",
    "ERROR_MISSING_CREDENTIALS",
    "ERROR_MISSING_CONFIG",
]
