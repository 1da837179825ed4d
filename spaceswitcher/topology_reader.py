"""Space topology parsing.

This module turns the host's spaces configuration snapshot into an ordered
list of displays, each with its ordered list of spaces, and attaches the
physical screen metadata (name and horizontal position) to every display.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .models import MAIN_DISPLAY_ID, UNRESOLVED_ORDER_KEY, Display, Screen, Space

# Configuration snapshot keys
MANAGEMENT_DATA_KEY = "Management Data"
MONITORS_KEY = "Monitors"
DISPLAY_IDENTIFIER_KEY = "Display Identifier"
COLLAPSED_KEY = "Collapsed Space"
SPACES_KEY = "Spaces"
PRIMARY_SPACE_ID_KEY = "ManagedSpaceID"
SECONDARY_SPACE_ID_KEY = "id64"


class TopologyReader:
    """Builds the configuration-ordered display/space topology."""

    def __init__(self):
        self.logger = logging.getLogger("SpaceSwitcher.TopologyReader")

    def read(
        self, config_blob: Optional[Dict[str, Any]], screens: Sequence[Screen] = ()
    ) -> List[Display]:
        """Parse a configuration snapshot into displays.

        Args:
            config_blob: The host's spaces display configuration, e.g.
                {"Management Data": {"Monitors": [{"Display Identifier": "Main",
                "Spaces": [{"ManagedSpaceID": 1}, ...]}, ...]}}
            screens: Physical screens as reported by the OS

        Returns:
            Displays in configuration order (the host's addressing order).
            Collapsed displays and displays without spaces are left out. A
            missing or malformed snapshot yields an empty list.
        """
        monitors = self._extract_monitors(config_blob)
        if not monitors:
            return []

        parsed = []
        seen_ids = set()
        for monitor in monitors:
            if not isinstance(monitor, dict):
                self.logger.debug(f"Skipping non-dict monitor record: {monitor!r}")
                continue

            display_id = monitor.get(DISPLAY_IDENTIFIER_KEY)
            if not isinstance(display_id, str) or not display_id:
                self.logger.debug("Skipping monitor record without identifier")
                continue

            if COLLAPSED_KEY in monitor:
                self.logger.debug(f"Skipping collapsed display {display_id}")
                continue

            if display_id in seen_ids:
                self.logger.debug(f"Skipping duplicate display {display_id}")
                continue

            spaces = self._parse_spaces(display_id, monitor.get(SPACES_KEY))
            if not spaces:
                self.logger.debug(f"Skipping display {display_id} with no spaces")
                continue

            seen_ids.add(display_id)
            parsed.append((display_id, spaces))

        return self._resolve_screens(parsed, screens)

    def _extract_monitors(self, config_blob) -> List[Any]:
        if not isinstance(config_blob, dict):
            return []

        management_data = config_blob.get(MANAGEMENT_DATA_KEY)
        if not isinstance(management_data, dict):
            self.logger.debug(f"Snapshot has no '{MANAGEMENT_DATA_KEY}'")
            return []

        monitors = management_data.get(MONITORS_KEY)
        if not isinstance(monitors, list):
            self.logger.debug(f"Snapshot has no '{MONITORS_KEY}' list")
            return []

        return monitors

    def _parse_spaces(self, display_id: str, records) -> List[Space]:
        if not isinstance(records, list):
            return []

        spaces = []
        for position, record in enumerate(records):
            space_id = self._space_id(record)
            if space_id is None:
                self.logger.debug(
                    f"Skipping space record {position} on {display_id}: no identifier"
                )
                continue
            spaces.append(Space(id=space_id, position=position, display_id=display_id))
        return spaces

    @staticmethod
    def _space_id(record) -> Optional[int]:
        if not isinstance(record, dict):
            return None

        for key in (PRIMARY_SPACE_ID_KEY, SECONDARY_SPACE_ID_KEY):
            value = record.get(key)
            # bool is an int subclass but never a valid id
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        return None

    def _resolve_screens(self, parsed, screens: Sequence[Screen]) -> List[Display]:
        """Pair each parsed display with a physical screen.

        The main display takes the OS primary screen. The remaining displays
        are paired, in configuration order, with the remaining screens sorted
        left to right. The snapshot carries nothing that identifies a
        secondary display's screen, so the pairing is positional.
        """
        primary = None
        if any(display_id == MAIN_DISPLAY_ID for display_id, _ in parsed):
            primary = self._find_primary_screen(screens)
        others = sorted(
            (s for s in screens if s is not primary), key=lambda s: (s.x, s.y)
        )

        displays = []
        for index, (display_id, spaces) in enumerate(parsed):
            if display_id == MAIN_DISPLAY_ID:
                screen = primary
            else:
                screen = others.pop(0) if others else None

            if screen is None:
                self.logger.debug(f"No screen found for display {display_id}")
                name = f"Display {index + 1}"
                order_key = UNRESOLVED_ORDER_KEY
            else:
                name = screen.name or f"Display {index + 1}"
                order_key = screen.x

            displays.append(
                Display(
                    id=display_id,
                    name=name,
                    visual_order_key=order_key,
                    spaces=tuple(spaces),
                )
            )

        return displays

    @staticmethod
    def _find_primary_screen(screens: Sequence[Screen]) -> Optional[Screen]:
        for screen in screens:
            if screen.is_primary:
                return screen

        # If no screen is marked as primary, use the one at (0,0)
        for screen in screens:
            if screen.x == 0 and screen.y == 0:
                return screen

        return None
