"""macOS host bridge.

Reads the spaces configuration through `defaults`, the live current space of
every display through the private SkyLight framework and posts Ctrl+<digit>
keyboard events through Quartz. Every entry point degrades to an empty result
on other platforms or when a framework cannot be loaded.
"""

import ctypes
import logging
import plistlib
import subprocess
import time
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Set

from ..monitor_manager import MonitorManager
from ..topology_reader import PRIMARY_SPACE_ID_KEY, SECONDARY_SPACE_ID_KEY
from .base import HostBridge

SKYLIGHT_PATH = "/System/Library/PrivateFrameworks/SkyLight.framework/SkyLight"
SPACES_DOMAIN = "com.apple.spaces"
SPACES_CONFIG_KEY = "SpacesDisplayConfiguration"

# Key of each managed display's focused space in SLSCopyManagedDisplaySpaces
CURRENT_SPACE_KEY = "Current Space"

# Virtual key codes for the digits 1..9, 0 (slot 10)
ACTIVATION_KEY_CODES = {
    1: 18,
    2: 19,
    3: 20,
    4: 21,
    5: 23,
    6: 22,
    7: 26,
    8: 28,
    9: 25,
    10: 29,
}

KEY_PRESS_INTERVAL = 0.05


def current_space_ids(managed_displays: Optional[Iterable]) -> Set[int]:
    """Collect the current space of every managed display.

    Args:
        managed_displays: Display records from SLSCopyManagedDisplaySpaces,
            main display included

    Returns:
        set: Space ids, one per display that reports a current space
    """
    active = set()
    for display in managed_displays or ():
        if not isinstance(display, Mapping):
            continue
        current = display.get(CURRENT_SPACE_KEY)
        if not isinstance(current, Mapping):
            continue
        for key in (PRIMARY_SPACE_ID_KEY, SECONDARY_SPACE_ID_KEY):
            value = current.get(key)
            if isinstance(value, int) and not isinstance(value, bool) and value:
                active.add(int(value))
                break
    return active


class MacOSHost(HostBridge):
    """Host bridge for the macOS window server."""

    def __init__(self, monitor_manager=None, defaults_timeout=2.0):
        """Initialize the macOS bridge.

        Args:
            monitor_manager (MonitorManager, optional): Screen query. If None,
                creates a new instance.
            defaults_timeout (float): Seconds to wait for `defaults export`
        """
        self.logger = logging.getLogger("SpaceSwitcher.MacOSHost")
        self.monitor_manager = monitor_manager or MonitorManager()
        self.defaults_timeout = defaults_timeout

        # Private SkyLight symbols (ctypes), the pyobjc bridge and Quartz
        self._skylight = None
        self._objc = None
        self._quartz = None
        self._frameworks_loaded = False

    # Configuration snapshot

    def read_configuration_snapshot(self) -> Dict[str, Any]:
        try:
            result = subprocess.run(
                ["defaults", "export", SPACES_DOMAIN, "-"],
                capture_output=True,
                timeout=self.defaults_timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.debug(f"Could not run defaults: {e}")
            return {}

        if result.returncode != 0 or not result.stdout:
            self.logger.debug(
                f"defaults export {SPACES_DOMAIN} failed ({result.returncode})"
            )
            return {}

        try:
            data = plistlib.loads(result.stdout)
        except Exception as e:
            self.logger.warning(f"Could not parse {SPACES_DOMAIN} plist: {e}")
            return {}

        config = data.get(SPACES_CONFIG_KEY) if isinstance(data, dict) else None
        if not isinstance(config, dict):
            return {}
        return config

    # Live activity

    def read_active_spaces(self) -> Set[int]:
        """Read the space shown on every display, the main display included.

        Returns:
            set: Current space ids; empty when SkyLight is unavailable
        """
        if not self._load_frameworks() or self._skylight is None:
            return set()

        connection = self._skylight.SLSMainConnectionID()
        active = current_space_ids(self._copy_managed_display_spaces(connection))

        # The focused display's space, in case the per-display list is missing
        space_id = self._skylight.CGSGetActiveSpace(connection)
        if space_id:
            active.add(int(space_id))

        return active

    def _copy_managed_display_spaces(self, connection):
        if self._objc is None:
            return None

        ref = self._skylight.SLSCopyManagedDisplaySpaces(connection)
        if not ref:
            return None
        try:
            return list(self._objc.objc_object(c_void_p=ref))
        finally:
            # Copy rule: the bridged proxy holds its own reference
            self._skylight.CFRelease(ref)

    # Screens

    def query_screens(self):
        return self.monitor_manager.query_screens()

    # Activation

    def send_activation_command(self, index: int) -> None:
        key_code = ACTIVATION_KEY_CODES.get(index)
        if key_code is None:
            self.logger.warning(f"No activation key for slot {index}")
            return

        if not self._load_frameworks() or self._quartz is None:
            self.logger.warning("Quartz unavailable, cannot switch spaces")
            return

        quartz = self._quartz
        source = quartz.CGEventSourceCreate(quartz.kCGEventSourceStateHIDSystemState)
        key_down = quartz.CGEventCreateKeyboardEvent(source, key_code, True)
        key_up = quartz.CGEventCreateKeyboardEvent(source, key_code, False)
        quartz.CGEventSetFlags(key_down, quartz.kCGEventFlagMaskControl)
        quartz.CGEventSetFlags(key_up, quartz.kCGEventFlagMaskControl)

        quartz.CGEventPost(quartz.kCGHIDEventTap, key_down)
        time.sleep(KEY_PRESS_INTERVAL)
        quartz.CGEventPost(quartz.kCGHIDEventTap, key_up)
        self.logger.debug(f"Posted Ctrl+key {key_code} for slot {index}")

    # Framework loading

    def _load_frameworks(self) -> bool:
        """Load Quartz, the pyobjc bridge and the SkyLight symbols once.

        Returns:
            bool: True if at least one of SkyLight and Quartz is available
        """
        if self._frameworks_loaded:
            return any((self._skylight, self._quartz))
        self._frameworks_loaded = True

        try:
            import objc
            import Quartz

            self._objc = objc
            self._quartz = Quartz
        except ImportError as e:
            self.logger.warning(f"pyobjc unavailable, switching disabled: {e}")

        try:
            skylight = ctypes.CDLL(SKYLIGHT_PATH)
            skylight.SLSMainConnectionID.restype = ctypes.c_uint32
            skylight.SLSMainConnectionID.argtypes = []
            skylight.CGSGetActiveSpace.restype = ctypes.c_uint64
            skylight.CGSGetActiveSpace.argtypes = [ctypes.c_uint32]
            skylight.SLSCopyManagedDisplaySpaces.restype = ctypes.c_void_p
            skylight.SLSCopyManagedDisplaySpaces.argtypes = [ctypes.c_uint32]
            # SkyLight links CoreFoundation, so CFRelease resolves through it
            skylight.CFRelease.restype = None
            skylight.CFRelease.argtypes = [ctypes.c_void_p]
            self._skylight = skylight
        except (OSError, AttributeError) as e:
            self.logger.warning(f"SkyLight unavailable, active spaces unknown: {e}")

        return any((self._skylight, self._quartz))
