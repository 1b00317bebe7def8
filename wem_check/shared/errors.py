"""Error types raised by the WEM check."""


class WemCheckError(Exception):
    """Base class for recognised check failures."""


class RegistryReadError(WemCheckError):
    """The debug mode registry value could not be read."""

    def __init__(self, key_path: str, value_name: str, reason: str) -> None:
        self.key_path = key_path
        self.value_name = value_name
        self.reason = reason
        super().__init__(f"Cannot read {key_path}\\{value_name}: {reason}")


class LogQueryError(WemCheckError):
    """The event log could not be opened or read."""

    def __init__(self, log_name: str, reason: str) -> None:
        self.log_name = log_name
        self.reason = reason
        super().__init__(f"Cannot query event log '{log_name}': {reason}")
