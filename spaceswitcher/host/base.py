"""Base class for host bridges."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Set

from ..models import Screen


class HostBridge(ABC):
    """Abstract access to the host window manager and screens."""

    @abstractmethod
    def read_configuration_snapshot(self) -> Dict[str, Any]:
        """Read the spaces display configuration.

        Returns:
            Nested dict with "Management Data" -> "Monitors" records, or an
            empty dict if the configuration is absent
        """
        pass

    @abstractmethod
    def read_active_spaces(self) -> Set[int]:
        """Get the ids of the currently active spaces, one per display.

        Returns:
            Set of space ids; empty if the live query is unavailable
        """
        pass

    @abstractmethod
    def query_screens(self) -> List[Screen]:
        """Get the physical screens in OS order."""
        pass

    @abstractmethod
    def send_activation_command(self, index: int) -> None:
        """Activate the space at a global slot.

        Fire-and-forget: no confirmation is available from the host.

        Args:
            index: Global slot in 1..10
        """
        pass
