"""
Default settings for terraclient.

These are the default values used when no user configuration exists.
"""

DEFAULT_SETTINGS = {
    "version": "1.0.0",

    # Terraform binary (name looked up on PATH, or absolute path)
    "terraform_binary": "terraform",

    # Environment variable the credentials are exported as
    "credentials_env_var": "GOOGLE_APPLICATION_CREDENTIALS",

    # Workspace directories
    "workspace_prefix": "terraform_client_workingdir",
    "keep_workspaces": False,  # True leaves directories behind for debugging

    # Seconds to wait for a terraform process; None waits indefinitely
    "timeout": None,

    # Logging
    "log_level": "INFO",
}

# Environment variables that override settings, mapped to the setting key
ENV_OVERRIDES = {
    "TERRACLIENT_TERRAFORM_BINARY": "terraform_binary",
    "TERRACLIENT_KEEP_WORKSPACES": "keep_workspaces",
}
