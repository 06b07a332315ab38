"""
Error kinds raised by the alert check.
"""


class CheckError(Exception):
    """Base class for all check failures"""


class ConfigError(CheckError, ValueError):
    """Malformed or conflicting configuration, detected before any I/O"""


class InvalidPattern(CheckError):
    """A filter criterion's regular expression failed to compile"""

    def __init__(self, name: str, pattern, cause: Exception):
        self.name = name
        self.pattern = pattern
        self.cause = cause
        super().__init__(f"failed to compile regex '{pattern}' for '{name}': {cause}")


class TransportError(CheckError):
    """Network, TLS or trust bundle failure while fetching alerts"""


class DecodeError(CheckError):
    """Backend response does not have the expected shape"""
