"""Exceptions raised by SpaceSwitcher components."""


class SpaceSwitcherError(Exception):
    """Base class for SpaceSwitcher errors."""

    pass


class ConfigError(SpaceSwitcherError):
    """Exception raised for invalid configuration updates."""

    pass


class ServiceNotInitializedError(SpaceSwitcherError):
    """Exception raised when the API is used before setup_api()."""

    pass
