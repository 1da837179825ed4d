import os
import json
import copy
import math
import logging

from .errors import ConfigError

DEFAULT_SETTINGS = {
    "poll_interval": 0.5,
    "follow_up_delay": 0.3,
    "api_host": "127.0.0.1",
    "api_port": 5556,
}

# Settings read as durations in seconds by the control loop and the model
DURATION_SETTINGS = ("poll_interval", "follow_up_delay")


def is_valid_duration(value):
    """Check that a value is a finite, non-negative number of seconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


class ConfigManager:
    """Manages the application configuration stored in JSON format.

    Besides the application settings, the file holds a namespaced key/value
    store ("store" -> namespace -> key -> value) used for persisted state
    such as user-chosen space names.
    """

    def __init__(self, config_path=None):
        """Initialize the configuration manager.

        Args:
            config_path (str, optional): Path to the config file. If None, uses default location.
        """
        self.logger = logging.getLogger("SpaceSwitcher.ConfigManager")

        if config_path is None:
            # Default location is in the package directory
            self.config_path = os.path.join(
                os.path.dirname(os.path.abspath(__file__)), "spaceswitcher_config.json"
            )
        else:
            self.config_path = str(config_path)

        self.config_dir = os.path.dirname(self.config_path)

        # Ensure the config directory exists
        if self.config_dir and not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir)

        # Load or create the config file
        if not os.path.exists(self.config_path):
            self.logger.info(
                f"Config file not found. Creating default at {self.config_path}"
            )
            self.config = self._create_default_config()
            self.save_config()
        else:
            self.load_config()

        # Ensure snapshot exists even if load_config needed to create defaults.
        if not hasattr(self, "_last_saved_json"):
            self._last_saved_json = json.dumps(self.config, sort_keys=True)

    def load_config(self):
        """Load configuration from the JSON file."""
        try:
            with open(self.config_path, "r") as f:
                self.config = json.load(f)

            # Snapshot for change detection in save_config.
            self._last_saved_json = json.dumps(self.config, sort_keys=True)

            if not self._validate_config():
                self.logger.warning("Invalid config file. Creating new default config.")
                self.config = self._create_default_config()
                self.save_config()

            return True
        except Exception as e:
            self.logger.error(f"Error loading config: {str(e)}")
            self.config = self._create_default_config()
            return False

    def save_config(self):
        """Save configuration to the JSON file, skipping unchanged writes."""
        try:
            current_json = json.dumps(self.config, sort_keys=True)
            if getattr(self, "_last_saved_json", None) == current_json and os.path.exists(
                self.config_path
            ):
                return True

            with open(self.config_path, "w") as f:
                json.dump(self.config, f, indent=2)

            self._last_saved_json = current_json
            self.logger.debug(f"Config saved to {self.config_path}")

            return True
        except Exception as e:
            self.logger.error(f"Error saving config: {str(e)}")
            return False

    def _create_default_config(self):
        """Create a default configuration structure."""
        return {"settings": dict(DEFAULT_SETTINGS), "store": {}}

    def _validate_config(self):
        """Validate that the config has the required structure."""
        if not isinstance(self.config, dict):
            return False
        if "store" in self.config and not isinstance(self.config["store"], dict):
            return False
        if "settings" in self.config and not isinstance(self.config["settings"], dict):
            return False

        self.config.setdefault("store", {})
        settings = self.config.setdefault("settings", {})
        for key, value in DEFAULT_SETTINGS.items():
            settings.setdefault(key, value)

        for key in DURATION_SETTINGS:
            if not is_valid_duration(settings[key]):
                self.logger.warning(
                    f"Invalid {key} {settings[key]!r} in config, using {DEFAULT_SETTINGS[key]}"
                )
                settings[key] = DEFAULT_SETTINGS[key]

        return True

    # Settings management methods

    def get_settings(self):
        """Get all application settings.

        Returns:
            dict: A copy of the application settings
        """
        return dict(self.config["settings"])

    def update_settings(self, settings_dict):
        """Update application settings.

        Args:
            settings_dict (dict): Settings to update (partial or full)

        Returns:
            bool: True if the settings were persisted

        Raises:
            ConfigError: If settings_dict is not a dict or a duration setting
                is not a non-negative number. Nothing is stored in that case.
        """
        if not isinstance(settings_dict, dict):
            raise ConfigError(
                f"Settings update must be a dict, got {type(settings_dict).__name__}"
            )

        for key in DURATION_SETTINGS:
            if key in settings_dict and not is_valid_duration(settings_dict[key]):
                raise ConfigError(
                    f"{key} must be a non-negative number of seconds, "
                    f"got {settings_dict[key]!r}"
                )

        self.config["settings"].update(settings_dict)
        self.logger.info(f"Settings updated: {settings_dict}")
        return self.save_config()

    def get_setting(self, key, default=None):
        """Get a specific setting value.

        Args:
            key (str): Setting key
            default: Default value if key doesn't exist

        Returns:
            The setting value or default
        """
        return self.config["settings"].get(key, default)

    def set_setting(self, key, value):
        """Set a specific setting value."""
        return self.update_settings({key: value})

    # Namespaced key/value store

    def load(self, namespace, key):
        """Load a value from the key/value store.

        Args:
            namespace (str): Store namespace
            key (str): Key within the namespace

        Returns:
            The stored value, or None if absent
        """
        return self.config["store"].get(namespace, {}).get(key)

    def store(self, namespace, key, value):
        """Store a value, overwriting any previous one."""
        self.config["store"].setdefault(namespace, {})[key] = value
        return self.save_config()

    def delete(self, namespace, key):
        """Delete a key from a namespace.

        Returns:
            bool: True if the key existed
        """
        entries = self.config["store"].get(namespace)
        if not entries or key not in entries:
            return False

        del entries[key]
        self.save_config()
        return True

    def clear_namespace(self, namespace):
        """Remove every key of a namespace in one write."""
        removed = self.config["store"].pop(namespace, None)
        self.save_config()
        if removed:
            self.logger.info(f"Cleared {len(removed)} entries from '{namespace}'")

    def get_namespace(self, namespace):
        """Get a copy of every key/value pair in a namespace."""
        return copy.deepcopy(self.config["store"].get(namespace, {}))
