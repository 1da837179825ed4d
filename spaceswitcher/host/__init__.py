"""Host bridges for reading space state and activating spaces."""

from .base import HostBridge
from .macos import MacOSHost

__all__ = ["HostBridge", "MacOSHost"]
