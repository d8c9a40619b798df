"""Agent package public API."""

from .runtime import Runtime
from .switch import ModeSwitchController, SwitchResult

# Re-export for convenience.
__all__ = ["ModeSwitchController", "Runtime", "SwitchResult"]
