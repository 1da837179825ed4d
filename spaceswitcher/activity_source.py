import logging
from dataclasses import replace
from typing import AbstractSet, List, Sequence, Set

from .models import Display


def overlay_activity(
    displays: Sequence[Display], live_active_set: AbstractSet[int]
) -> List[Display]:
    """Mark every space whose id is in live_active_set as current.

    Args:
        displays: Displays to overlay; left untouched
        live_active_set: Ids of the spaces the host reports as active

    Returns:
        New Display objects with is_current recomputed for every space
    """
    return [
        display.with_spaces(
            replace(space, is_current=space.id in live_active_set)
            for space in display.spaces
        )
        for display in displays
    ]


class ActivitySource:
    """Reads the live active-space set from the host."""

    def __init__(self, host):
        """Initialize the activity source.

        Args:
            host: HostBridge providing read_active_spaces()
        """
        self.logger = logging.getLogger("SpaceSwitcher.ActivitySource")
        self.host = host

    def active_spaces(self) -> Set[int]:
        """Query the active spaces, one per display.

        Returns:
            Set of space ids; empty when the host API is unavailable
        """
        try:
            return set(self.host.read_active_spaces() or ())
        except Exception as e:
            self.logger.warning(f"Could not read active spaces: {str(e)}")
            return set()

    def overlay(self, displays: Sequence[Display]) -> List[Display]:
        return overlay_activity(displays, self.active_spaces())
