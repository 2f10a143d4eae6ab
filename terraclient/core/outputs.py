"""
Decoding of `terraform output -json`.
"""

import json
from typing import Any, Dict

from ..errors import OutputDecodeError


def decode_outputs(text: str) -> Dict[str, Any]:
    """
    Turn terraform's JSON output listing into a name -> value mapping.

    Terraform emits one object per output carrying "sensitive", "type"
    and "value"; only the value is kept. A state without outputs
    decodes to an empty mapping whether terraform printed "{}" or
    nothing at all.

    Raises:
        OutputDecodeError: If the text is not an output listing
    """
    if not text or not text.strip():
        return {}

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise OutputDecodeError(f"Failed to decode terraform outputs: {e}", text) from e

    if not isinstance(raw, dict):
        raise OutputDecodeError(
            f"Expected a JSON object of outputs, got {type(raw).__name__}", text
        )

    outputs = {}
    for name, output in raw.items():
        if not isinstance(output, dict) or "value" not in output:
            raise OutputDecodeError(f"Output '{name}' has no value", text)
        outputs[name] = output["value"]
    return outputs
