"""
Input validation for values that end up on a terraform command line.

Arguments are always passed to the engine as an argument list with
shell=False, so the checks here are about what terraform itself will
accept rather than shell escaping:
- Variable names must be valid Terraform identifiers
- Arguments must not contain null bytes or be unreasonably long
- The plugin directory must exist
"""

import os
import re

from ..errors import TerraclientError


class SecurityError(TerraclientError):
    """Raised when a security validation fails."""
    pass


class InputSanitizer:
    """
    Provides input validation and sanitization methods.

    All methods raise SecurityError if validation fails.
    """

    # Terraform variable name pattern: must start with letter/underscore,
    # can contain letters, digits, underscores, hyphens
    VARIABLE_NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_-]*$')

    MAX_VARIABLE_NAME_LENGTH = 255
    MAX_COMMAND_ARG_LENGTH = 10000

    @staticmethod
    def sanitize_path(path: str) -> str:
        """
        Validate and normalize a directory path.

        Args:
            path: Path to validate

        Returns:
            Normalized absolute path

        Raises:
            SecurityError: If path is empty, missing or not a directory
        """
        if not path:
            raise SecurityError("Path cannot be empty")

        try:
            abs_path = os.path.realpath(os.path.expanduser(path))
        except (OSError, ValueError) as e:
            raise SecurityError(f"Invalid path: {e}") from e

        if not os.path.exists(abs_path):
            raise SecurityError(f"Path does not exist: {path}")

        if not os.path.isdir(abs_path):
            raise SecurityError(f"Path is not a directory: {path}")

        return abs_path

    @staticmethod
    def sanitize_variable_name(name: str) -> str:
        """
        Validate Terraform variable name.

        Rules:
        - Must start with letter or underscore
        - Can contain letters, digits, underscores, hyphens
        - Max length: 255 characters

        Returns:
            Validated variable name (unchanged if valid)

        Raises:
            SecurityError: If name is invalid
        """
        if not name:
            raise SecurityError("Variable name cannot be empty")

        if len(name) > InputSanitizer.MAX_VARIABLE_NAME_LENGTH:
            raise SecurityError(
                f"Variable name too long (max {InputSanitizer.MAX_VARIABLE_NAME_LENGTH})"
            )

        if not InputSanitizer.VARIABLE_NAME_PATTERN.match(name):
            raise SecurityError(
                f"Invalid variable name '{name}': must start with letter/underscore, "
                "contain only letters, digits, underscores, hyphens"
            )

        return name

    @staticmethod
    def is_safe_command_arg(arg: str) -> bool:
        """
        Check if a command argument can be passed to subprocess.

        Null bytes are rejected by exec() and would otherwise surface as
        a ValueError deep inside subprocess.
        """
        if '\x00' in arg:
            return False

        if len(arg) > InputSanitizer.MAX_COMMAND_ARG_LENGTH:
            return False

        return True
