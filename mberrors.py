# Error taxonomy shared by the modbusc modules.
# Only the command-line entry points catch these; library code raises them.


class ModbusClientError(Exception):
    pass


class ConfigurationError(ModbusClientError):
    """Caller-supplied parameters are self-inconsistent. Raised before any transaction."""


class ModbusConnectionError(ModbusClientError, ConnectionError):
    """The transport could not open a link for the current settings."""


class TransactionError(ModbusClientError):
    """A transaction did not transfer the requested number of units."""

    def __init__(self, message, ret=-1):
        super().__init__(message)
        self.ret = ret


class UnsupportedOperation(ModbusClientError):
    """The function code is known but has no executable path."""
