import logging
from typing import Dict, Optional

SPACE_NAMES_NAMESPACE = "SpaceNames"


class NameStore:
    """Persistent mapping of space ids to user-chosen labels.

    Keys are the string form of the space id. The store has no opinion on
    label content: callers decide that an empty label means "remove".
    """

    def __init__(self, config_manager, namespace: str = SPACE_NAMES_NAMESPACE):
        """Initialize the name store.

        Args:
            config_manager: ConfigManager providing load/store/delete
            namespace: Key/value namespace holding the names
        """
        self.logger = logging.getLogger("SpaceSwitcher.NameStore")
        self.config_manager = config_manager
        self.namespace = namespace

    def get(self, space_id) -> Optional[str]:
        name = self.config_manager.load(self.namespace, str(space_id))
        if name is None:
            return None
        return str(name)

    def set(self, space_id, name: str) -> None:
        self.config_manager.store(self.namespace, str(space_id), name)
        self.logger.info(f"Named space {space_id}: '{name}'")

    def remove(self, space_id) -> None:
        if self.config_manager.delete(self.namespace, str(space_id)):
            self.logger.info(f"Removed name of space {space_id}")

    def reset_all(self) -> None:
        """Clear every stored name. Irreversible."""
        self.config_manager.clear_namespace(self.namespace)

    def all_names(self) -> Dict[str, str]:
        return self.config_manager.get_namespace(self.namespace)
