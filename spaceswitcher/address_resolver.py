"""Global activation addressing.

The host activates a space through a fixed channel of ten slots
(Ctrl+1 .. Ctrl+0). Slots are assigned by walking displays in the host's
internal order (the configuration order, never the visual order) and the
spaces of each display in position order.
"""

import logging
from typing import Dict, Iterator, Optional, Sequence, Tuple

from .models import Display, Space

# Hard ceiling of the activation command channel
MAX_ADDRESSES = 10

logger = logging.getLogger("SpaceSwitcher.AddressResolver")


def _addressable(displays: Sequence[Display]) -> Iterator[Tuple[int, Space]]:
    index = 0
    for display in displays:
        for space in sorted(display.spaces, key=lambda s: s.position):
            if index >= MAX_ADDRESSES:
                return
            index += 1
            yield index, space


def resolve(displays: Sequence[Display]) -> Dict[Tuple[str, int], int]:
    """Map every addressable (display_id, position) pair to its slot.

    Args:
        displays: Displays in configuration order

    Returns:
        Dict of (display_id, position) -> 1-based slot. Spaces past the
        tenth are absent.

    Example:
        >>> resolve([main_with_3_spaces, secondary_with_2_spaces])
        {("Main", 0): 1, ("Main", 1): 2, ("Main", 2): 3, ("UUID", 0): 4, ("UUID", 1): 5}
    """
    return {
        (space.display_id, space.position): index
        for index, space in _addressable(displays)
    }


def resolve_single(space_id: int, displays: Sequence[Display]) -> Optional[int]:
    """Find the slot of one space.

    Args:
        space_id: Space to look up
        displays: Displays in configuration order

    Returns:
        1-based slot, or None if the space is unknown or past the tenth slot
    """
    for index, space in _addressable(displays):
        if space.id == space_id:
            return index

    logger.debug(f"Space {space_id} is not addressable")
    return None


def address_count(displays: Sequence[Display]) -> int:
    """Number of slots in use, min(10, total spaces)."""
    return min(MAX_ADDRESSES, sum(len(display.spaces) for display in displays))


def is_valid_index(index) -> bool:
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    return 1 <= index <= MAX_ADDRESSES
