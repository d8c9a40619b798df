"""Custom exception types used across the switchyard runtime.

Failures raised by collaborators (history store, permission registry) are not
wrapped in these types; they reach the caller unchanged.
"""


class SwitchyardError(Exception):
    """Base class for switchyard errors."""


class InvalidModeError(SwitchyardError, ValueError):
    """Raised when a requested mode is outside the supported set."""


class RoleNotFoundError(SwitchyardError):
    """Raised when a role name does not match any loaded role."""


class RoleSwitchCancelled(SwitchyardError):
    """Raised when the user declines a role switch confirmation."""


class ToolNotFoundError(SwitchyardError):
    """Raised when an unknown tool name is requested."""


class ToolParameterError(SwitchyardError, ValueError):
    """Raised when tool parameters fail validation."""
