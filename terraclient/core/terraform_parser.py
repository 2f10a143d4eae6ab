"""
Terraform configuration parser.

Reads variable declarations out of a session's configuration so that
inputs can be checked against them before terraform runs.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import hcl2

logger = logging.getLogger(__name__)


@dataclass
class TerraformVariable:
    """
    A variable block declared in the configuration.

    Attributes:
        name: Variable name
        has_default: Whether the block declares a default value
    """
    name: str
    has_default: bool = False

    def is_required(self) -> bool:
        """A variable without a default must be supplied as an input."""
        return not self.has_default


class TerraformParser:
    """
    Parser for a single in-memory Terraform configuration.

    The engine is the authority on whether a configuration is valid;
    parse failures here are logged and produce no variables.
    """

    def __init__(self, config: Union[bytes, str]):
        if isinstance(config, bytes):
            config = config.decode("utf-8", errors="replace")
        self.config = config
        self._variables: Optional[List[TerraformVariable]] = None

    def _load(self) -> dict:
        return hcl2.loads(self.config)

    def parse_variables(self) -> List[TerraformVariable]:
        """
        Return the variable blocks declared in the configuration.
        """
        if self._variables is not None:
            return self._variables

        try:
            parsed = self._load()
        except Exception as e:
            logger.debug(f"HCL parse error, skipping variable discovery: {e}")
            self._variables = []
            return self._variables

        variables = []
        for var_block in parsed.get('variable', []):
            for var_name, var_config in var_block.items():
                variables.append(TerraformVariable(
                    name=_strip_quotes(var_name),
                    has_default='default' in (var_config or {}),
                ))

        self._variables = variables
        logger.debug(f"Parsed {len(variables)} variables")
        return self._variables

    def variable_names(self) -> List[str]:
        return [v.name for v in self.parse_variables()]

    def required_variable_names(self) -> List[str]:
        """Names of declared variables that have no default."""
        return [v.name for v in self.parse_variables() if v.is_required()]

    def validate_syntax(self) -> Tuple[bool, Optional[str]]:
        """
        Check that the configuration parses as HCL.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not self.config.strip():
            return False, "Configuration is empty"
        try:
            self._load()
        except Exception as e:
            return False, f"Syntax error: {e}"
        return True, None


def _strip_quotes(name: str) -> str:
    if len(name) >= 2 and name[0] == name[-1] == '"':
        return name[1:-1]
    return name
