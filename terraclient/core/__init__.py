"""
Core Terraform lifecycle functionality for terraclient.

This module provides the business logic for driving Terraform:
- Managing single-use workspaces
- Executing Terraform commands
- Sequencing apply, destroy and output reads for a session
"""

from .terraform_parser import TerraformParser, TerraformVariable
from .terraform_runner import TerraformRunner, CommandResult
from .workspace import WorkspaceManager, Workspace
from .outputs import decode_outputs
from .lifecycle import TerraformLifecycle, OperationResult
from .session import InfraSession

__all__ = [
    "TerraformParser",
    "TerraformVariable",
    "TerraformRunner",
    "CommandResult",
    "WorkspaceManager",
    "Workspace",
    "decode_outputs",
    "TerraformLifecycle",
    "OperationResult",
    "InfraSession",
]
