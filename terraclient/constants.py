"""
Fixed names and marker strings shared across terraclient.

The marker strings are matched against engine output by callers, so
they must stay byte-for-byte stable.
"""

ERROR_MISSING_CREDENTIALS = "no credentials specified for running terraform actions"
ERROR_MISSING_CONFIG = "no configuration supplied for running terraform actions"

APPLY_SUCCESS = "Apply complete! Resources:"
DESTROY_SUCCESS = "Destroy complete! Resources:"
PLAN_FAILURE = "There are some problems with the configuration"

CONFIG_FILENAME = "terraform.tf"
STATE_FILENAME = "terraform.tfstate"

# Appended to every invocation
NO_COLOR_FLAG = "-no-color"

# https://github.com/hashicorp/go-checkpoint
CHECKPOINT_DISABLE = "CHECKPOINT_DISABLE"
