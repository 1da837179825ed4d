import logging
from screeninfo import get_monitors

from .models import Screen


class MonitorManager:
    """Queries the physical screens currently attached to the host."""

    def __init__(self):
        self.logger = logging.getLogger("SpaceSwitcher.MonitorManager")

        # Used to reduce log noise (only log screen list changes at INFO)
        self._last_detected = None

    def query_screens(self):
        """Detect all currently connected screens.

        Returns:
            list: Screen objects in the order reported by the OS, or an empty
                list if the screen query fails
        """
        try:
            screens = [
                Screen(
                    is_primary=bool(getattr(monitor, "is_primary", False)),
                    x=monitor.x,
                    y=monitor.y,
                    name=self._generate_monitor_name(monitor),
                )
                for monitor in get_monitors()
            ]
        except Exception as e:
            self.logger.error(f"Error detecting screens: {str(e)}")
            return []

        # Only log at INFO when the set of detected screens changes.
        detected_key = tuple((s.name, s.x, s.y) for s in screens)
        if detected_key != self._last_detected:
            self.logger.info(
                f"Detected {len(screens)} screens: {[s.name for s in screens]}"
            )
            self._last_detected = detected_key
        else:
            self.logger.debug(f"Detected {len(screens)} screens")

        return screens

    def _generate_monitor_name(self, monitor):
        """Generate a friendly name for a monitor.

        Args:
            monitor: Monitor object from screeninfo

        Returns:
            str: Friendly name for the monitor
        """
        if getattr(monitor, "name", None):
            return monitor.name

        # Generate a name based on position
        if monitor.x == 0 and monitor.y == 0:
            position = "Primary"
        else:
            position = f"at ({monitor.x}, {monitor.y})"

        return f"Monitor {position} ({monitor.width}×{monitor.height})"
