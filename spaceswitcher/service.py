import math
import time
import logging
import threading
from datetime import datetime

from .config_manager import ConfigManager
from .host import MacOSHost
from .monitor_manager import MonitorManager
from .name_store import NameStore
from .space_model import SpaceModel


class DeferredCallbacks:
    """One-shot callbacks run by the service loop once their delay expires."""

    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self._pending = []

    def schedule(self, delay, callback):
        self._pending.append((self.clock() + delay, callback))

    def run_due(self):
        """Run every callback whose deadline has passed.

        Returns:
            int: Number of callbacks run
        """
        now = self.clock()
        due = [cb for deadline, cb in self._pending if deadline <= now]
        self._pending = [(d, cb) for d, cb in self._pending if d > now]
        for callback in due:
            callback()
        return len(due)

    def clear(self):
        self._pending = []

    def __len__(self):
        return len(self._pending)


class SpaceSwitcherService:
    """Main service class: owns the control thread and the space model."""

    def __init__(self, config_path=None, host=None):
        """Initialize the SpaceSwitcher service.

        Args:
            config_path (str, optional): Path to the config file. If None, uses default location.
            host (HostBridge, optional): Host bridge. If None, uses the macOS bridge.
        """
        self.logger = logging.getLogger("SpaceSwitcher.Service")

        self.config_manager = ConfigManager(config_path)
        self.name_store = NameStore(self.config_manager)
        self.host = host if host is not None else MacOSHost(MonitorManager())

        self.deferred = DeferredCallbacks()
        self.model = SpaceModel(
            self.host,
            self.name_store,
            scheduler=self.deferred.schedule,
            follow_up_delay=self.config_manager.get_setting("follow_up_delay", 0.3),
        )

        # HTTP handlers run on other threads; every model access goes through this lock
        self.model_lock = threading.Lock()

        # Service state
        self.running = False
        self.service_thread = None
        self.status = {
            "status": "stopped",
            "last_refresh": None,
            "displays": 0,
            "spaces": 0,
            "switches": 0,
            "errors": 0,
        }

    def start(self):
        """Start the SpaceSwitcher service."""
        if self.running:
            self.logger.warning("Service already running")
            return False

        self.running = True
        self.status["status"] = "starting"

        self.service_thread = threading.Thread(target=self._service_loop)
        self.service_thread.daemon = True
        self.service_thread.start()

        self.logger.info("Service started")
        return True

    def stop(self):
        """Stop the SpaceSwitcher service."""
        if not self.running:
            self.logger.warning("Service not running")
            return False

        self.running = False
        self.status["status"] = "stopping"

        # Wait for thread to exit
        if self.service_thread:
            self.service_thread.join(timeout=5)

        self.status["status"] = "stopped"
        self.logger.info("Service stopped")
        return True

    def shutdown(self):
        """Stop the loop and tear down the model for good."""
        if self.running:
            self.stop()
        with self.model_lock:
            self.deferred.clear()
            self.model.close()

    def get_status(self):
        """Get the current service status.

        Returns:
            dict: Service status information
        """
        status = dict(self.status)
        status["model_state"] = self.model.state.value
        status["pending_follow_ups"] = len(self.deferred)
        return status

    def tick(self):
        """Run one control-loop iteration: due follow-ups, then a refresh."""
        with self.model_lock:
            self.deferred.run_due()
            self._refresh_locked()

    def refresh_now(self):
        """Refresh the model immediately.

        Returns:
            bool: True if the published snapshot changed
        """
        with self.model_lock:
            return self._refresh_locked()

    def _refresh_locked(self):
        # Caller holds model_lock
        changed = self.model.refresh()
        displays = self.model.displays
        self.status["last_refresh"] = datetime.now().isoformat()
        self.status["displays"] = len(displays)
        self.status["spaces"] = sum(len(d.spaces) for d in displays)
        return changed

    def _service_loop(self):
        """Main service loop that runs in a separate thread."""
        check_interval = 0.05  # seconds - granularity for deferred follow-ups
        last_refresh = float("-inf")

        self.status["status"] = "running"

        while self.running:
            try:
                with self.model_lock:
                    self.deferred.run_due()

                # Re-read every pass so interval changes apply without a restart
                poll_interval = self.config_manager.get_setting("poll_interval", 0.5)
                current_time = time.monotonic()
                if current_time - last_refresh >= poll_interval:
                    self.refresh_now()
                    last_refresh = current_time

            except Exception as e:
                self.logger.error(f"Error in service loop: {str(e)}")
                self.status["errors"] += 1

            time.sleep(check_interval)

    # API methods for the presentation layer

    def get_displays(self):
        """Get the published snapshot with resolved labels.

        Returns:
            list: Display dicts in visual order, each with its spaces
        """
        with self.model_lock:
            return [
                {
                    "id": display.id,
                    "name": display.name,
                    "visual_order_key": (
                        None
                        if math.isinf(display.visual_order_key)
                        else display.visual_order_key
                    ),
                    "spaces": [self._space_info(space) for space in display.spaces],
                }
                for display in self.model.displays
            ]

    def _space_info(self, space):
        label = self.model.label_for(space.id)
        return {
            "id": space.id,
            "position": space.position,
            "number": space.number,
            "label": label,
            "title": f"[{label}]" if space.is_current else f" {label} ",
            "is_current": space.is_current,
        }

    def switch_to_space(self, space_id):
        with self.model_lock:
            issued = self.model.switch_to_space(space_id)
            if issued:
                self.status["switches"] += 1
            return issued

    def switch_to_index(self, index):
        with self.model_lock:
            issued = self.model.switch_to_index(index)
            if issued:
                self.status["switches"] += 1
            return issued

    def rename_space(self, space_id, name):
        with self.model_lock:
            self.model.rename(space_id, name)
            return self.model.label_for(space_id)

    def clear_space_name(self, space_id):
        with self.model_lock:
            self.name_store.remove(space_id)
            return self.model.label_for(space_id)

    def reset_names(self):
        with self.model_lock:
            self.model.reset_names()
