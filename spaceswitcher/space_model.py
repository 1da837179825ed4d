import logging
from typing import Callable, List, Optional, Tuple

from . import address_resolver
from .activity_source import ActivitySource
from .models import Display, ModelState, Space
from .topology_reader import TopologyReader

DEFAULT_FOLLOW_UP_DELAY = 0.3


class SpaceModel:
    """Observable space topology exposed to the presentation layer.

    The published `displays` snapshot is sorted left to right for
    presentation. Switching by space id never uses it: the address is
    resolved against a fresh configuration-order read, since visual and
    internal display order disagree once screens are rearranged.
    """

    def __init__(
        self,
        host,
        name_store,
        scheduler: Optional[Callable[[float, Callable[[], None]], None]] = None,
        follow_up_delay: float = DEFAULT_FOLLOW_UP_DELAY,
    ):
        """Initialize the space model.

        Args:
            host: HostBridge used for every host query and command
            name_store: NameStore holding user labels
            scheduler: Callable(delay, callback) running callback once on the
                control thread after delay seconds. If None, switches do not
                schedule a follow-up refresh.
            follow_up_delay: Seconds between a switch and its follow-up refresh
        """
        self.logger = logging.getLogger("SpaceSwitcher.SpaceModel")
        self.host = host
        self.name_store = name_store
        self.scheduler = scheduler
        self.follow_up_delay = follow_up_delay

        self.topology_reader = TopologyReader()
        self.activity_source = ActivitySource(host)

        self._displays: Tuple[Display, ...] = ()
        self._address_count = 0
        self._state = ModelState.STALE
        self._closed = False
        self._listeners: List[Callable[[Tuple[Display, ...]], None]] = []

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def displays(self) -> Tuple[Display, ...]:
        """Displays from the latest refresh, left to right."""
        return self._displays

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Callable[[Tuple[Display, ...]], None]) -> None:
        """Register a callback invoked with the new snapshot whenever it changes."""
        self._listeners.append(listener)

    def refresh(self) -> bool:
        """Re-read topology and activity and publish a new snapshot.

        Returns:
            bool: True if the published snapshot changed
        """
        if self._closed:
            return False

        topology = self._read_topology()
        overlaid = self.activity_source.overlay(topology)
        # sorted() is stable, so displays at the same position keep
        # configuration order
        snapshot = tuple(sorted(overlaid, key=lambda d: d.visual_order_key))

        self._address_count = address_resolver.address_count(topology)
        self._state = ModelState.FRESH

        # Identical snapshots keep the published object so observers see no change
        if snapshot == self._displays:
            return False

        # Only log at INFO when displays or spaces change, not the current flags.
        if self._layout_key(snapshot) != self._layout_key(self._displays):
            self.logger.info(
                "Topology changed: "
                + ", ".join(f"{d.name}={len(d.spaces)} spaces" for d in snapshot)
            )
        else:
            self.logger.debug("Active spaces changed")

        self._displays = snapshot
        self._notify(snapshot)
        return True

    @staticmethod
    def _layout_key(displays):
        return tuple((d.id, d.name, tuple(s.id for s in d.spaces)) for d in displays)

    def _read_topology(self) -> List[Display]:
        """Read a configuration-order topology straight from the host."""
        try:
            config_blob = self.host.read_configuration_snapshot()
        except Exception as e:
            self.logger.warning(f"Could not read configuration snapshot: {str(e)}")
            config_blob = {}

        try:
            screens = self.host.query_screens()
        except Exception as e:
            self.logger.warning(f"Could not query screens: {str(e)}")
            screens = []

        return self.topology_reader.read(config_blob, screens)

    def _notify(self, snapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error(f"Snapshot listener failed: {str(e)}")

    # Lookups

    def find_space(self, space_id) -> Optional[Space]:
        for display in self._displays:
            for space in display.spaces:
                if space.id == space_id:
                    return space
        return None

    def label_for(self, space_id) -> str:
        """Get the display text of a space.

        Args:
            space_id: Space to label

        Returns:
            str: The stored name, else the 1-based position within its
                display, else "" for a space not in the snapshot
        """
        name = self.name_store.get(space_id)
        if name is not None:
            return name

        space = self.find_space(space_id)
        if space is None:
            return ""
        return str(space.number)

    def rename(self, space_id, name) -> None:
        """Store a label for a space. A blank name clears the label."""
        name = (name or "").strip()
        if name:
            self.name_store.set(space_id, name)
        else:
            self.name_store.remove(space_id)

    def reset_names(self) -> None:
        self.name_store.reset_all()

    # Switching

    def switch_to_space(self, space_id) -> bool:
        """Activate a space by id.

        Args:
            space_id: Space to activate

        Returns:
            bool: True if an activation command was issued; False if the space
                is unknown or beyond the tenth slot
        """
        if self._closed:
            return False

        index = address_resolver.resolve_single(space_id, self._read_topology())
        if index is None:
            self.logger.info(f"Space {space_id} is not addressable, ignoring switch")
            return False

        return self._activate(index)

    def switch_to_index(self, index) -> bool:
        """Activate a pre-resolved global slot without reading the topology.

        Args:
            index: Global slot in 1..10

        Returns:
            bool: True if an activation command was issued; False if the slot
                is out of range or not in use after the latest refresh
        """
        if self._closed:
            return False

        if not address_resolver.is_valid_index(index) or index > self._address_count:
            self.logger.info(
                f"Slot {index!r} out of range (1..{self._address_count}), ignoring switch"
            )
            return False

        return self._activate(index)

    def _activate(self, index: int) -> bool:
        try:
            self.host.send_activation_command(index)
        except Exception as e:
            self.logger.error(f"Activation command {index} failed: {str(e)}")
            return False

        self.logger.info(f"Sent activation command {index}")
        if self.scheduler is not None:
            # Command already sent; the next poll picks up the change
            try:
                self.scheduler(self.follow_up_delay, self._follow_up_refresh)
            except Exception as e:
                self.logger.error(f"Could not schedule follow-up refresh: {str(e)}")
        return True

    def _follow_up_refresh(self) -> None:
        if self._closed:
            self.logger.debug("Model closed, skipping follow-up refresh")
            return
        self.refresh()

    def close(self) -> None:
        """Tear down the model. Later refreshes and follow-ups do nothing."""
        self._closed = True
        self._listeners.clear()
