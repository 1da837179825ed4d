"""Value types shared by the topology, activity and addressing components.

All entities are frozen so a published snapshot can be handed to the
presentation layer without copying.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

# Display identifier the host uses for the primary display
MAIN_DISPLAY_ID = "Main"

# Visual key for displays that could not be matched to a physical screen
UNRESOLVED_ORDER_KEY = math.inf


@dataclass(frozen=True)
class Space:
    """One virtual desktop."""

    id: int
    position: int  # 0-based, as reported by the configuration source
    display_id: str
    is_current: bool = False

    @property
    def number(self) -> int:
        """User-facing 1-based number within the owning display."""
        return self.position + 1


@dataclass(frozen=True)
class Display:
    """A physical output surface with its own ordered space list."""

    id: str
    name: str
    visual_order_key: float = UNRESOLVED_ORDER_KEY
    spaces: Tuple[Space, ...] = field(default_factory=tuple)

    @property
    def current_space(self) -> Optional[Space]:
        for space in self.spaces:
            if space.is_current:
                return space
        return None

    def with_spaces(self, spaces) -> "Display":
        return replace(self, spaces=tuple(spaces))


@dataclass(frozen=True)
class Screen:
    """Physical screen metadata as reported by the OS."""

    is_primary: bool
    x: int
    name: str
    y: int = 0


class ModelState(Enum):
    """Observable lifecycle of the SpaceModel."""

    STALE = "stale"
    FRESH = "fresh"
