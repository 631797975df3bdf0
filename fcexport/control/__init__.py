"""Pause/cancel control plane."""
from .commands import CommandListener
from .context import CANCELLED_MESSAGE, Cancelled, ControlContext

__all__ = ["CANCELLED_MESSAGE", "Cancelled", "CommandListener", "ControlContext"]
