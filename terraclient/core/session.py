"""
Infrastructure session.

An InfraSession holds everything terraform needs to manage one unit of
infrastructure: configuration, credentials, the last-known state, an
optional provider plugin directory and variable inputs.
"""

from typing import Any, Dict, Mapping, Optional, Union

from .lifecycle import TerraformLifecycle


BytesLike = Union[bytes, bytearray, str, None]


def _to_bytes(value: BytesLike) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class InfraSession:
    """
    One logical unit of infrastructure under management.

    A new session is empty. Fields are filled through properties or the
    set_* methods, after which apply(), destroy() and outputs() may be
    called any number of times. Only a successful apply() changes state.

    A session is not thread-safe; independent sessions can be used from
    different threads concurrently.

    Example:
        >>> session = InfraSession()
        >>> session.config = open("main.tf", "rb").read()
        >>> session.credentials = "/path/to/service-account.json"
        >>> stdout = session.apply()
        >>> session.outputs()
        {'ip': '10.0.0.1'}
        >>> session.destroy()
    """

    def __init__(
        self,
        config: BytesLike = None,
        credentials: BytesLike = None,
        state: BytesLike = None,
        plugin_dir: Optional[str] = None,
        inputs: Optional[Mapping[str, str]] = None,
        lifecycle: Optional[TerraformLifecycle] = None,
    ):
        self._config = _to_bytes(config)
        self._credentials = _to_bytes(credentials)
        self._state = _to_bytes(state)
        self._plugin_dir = plugin_dir or ""
        self._inputs: Dict[str, str] = dict(inputs or {})
        self._lifecycle = lifecycle

    def __repr__(self) -> str:
        return (
            f"InfraSession(config={len(self._config)} bytes, "
            f"credentials={'[REDACTED]' if self._credentials else 'unset'}, "
            f"state={len(self._state)} bytes, plugin_dir='{self._plugin_dir}', "
            f"inputs={sorted(self._inputs)})"
        )

    @property
    def config(self) -> bytes:
        return self._config

    @config.setter
    def config(self, value: BytesLike):
        self._config = _to_bytes(value)

    @property
    def credentials(self) -> bytes:
        return self._credentials

    @credentials.setter
    def credentials(self, value: BytesLike):
        self._credentials = _to_bytes(value)

    @property
    def state(self) -> bytes:
        return self._state

    @state.setter
    def state(self, value: BytesLike):
        self._state = _to_bytes(value)

    @property
    def plugin_dir(self) -> str:
        return self._plugin_dir

    @plugin_dir.setter
    def plugin_dir(self, value: Optional[str]):
        self._plugin_dir = value or ""

    @property
    def inputs(self) -> Dict[str, str]:
        return self._inputs

    @inputs.setter
    def inputs(self, value: Optional[Mapping[str, str]]):
        self._inputs = dict(value or {})

    def set_config(self, config: BytesLike):
        self.config = config

    def set_credentials(self, credentials: BytesLike):
        self.credentials = credentials

    def set_state(self, state: BytesLike):
        self.state = state

    def set_plugin_dir(self, plugin_dir: Optional[str]):
        self.plugin_dir = plugin_dir

    def set_inputs(self, inputs: Optional[Mapping[str, str]]):
        self.inputs = inputs

    @property
    def lifecycle(self) -> TerraformLifecycle:
        """The lifecycle used by apply/destroy/outputs, created on first use."""
        if self._lifecycle is None:
            self._lifecycle = TerraformLifecycle()
        return self._lifecycle

    @lifecycle.setter
    def lifecycle(self, lifecycle: Optional[TerraformLifecycle]):
        self._lifecycle = lifecycle

    def apply(self) -> str:
        """
        Provision the configuration and keep the resulting state.

        Returns:
            terraform apply's stdout (contains APPLY_SUCCESS)

        Raises:
            MissingCredentialsError, MissingConfigError, TerraformCommandError,
            WorkspaceError: state is left untouched in every case
        """
        result = self.lifecycle.apply(self)
        self._state = result.state or b""
        return result.stdout

    def destroy(self) -> str:
        """
        Tear down the infrastructure recorded in state.

        Returns:
            terraform destroy's stdout (contains DESTROY_SUCCESS)
        """
        return self.lifecycle.destroy(self).stdout

    def outputs(self) -> Dict[str, Any]:
        """Return output values from the current state."""
        return self.lifecycle.outputs(self)
