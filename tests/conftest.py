"""Shared fixtures: an in-memory host bridge and sample configuration snapshots."""

import pytest

from spaceswitcher.config_manager import ConfigManager
from spaceswitcher.host import HostBridge
from spaceswitcher.models import Screen
from spaceswitcher.name_store import NameStore

# Space ids of the two-display scenario
A, B, C = 101, 102, 103
D, E = 201, 202
SECONDARY_ID = "4C4C4544-0042-3510-8057-B3C04F4E4D32"


def make_monitor(display_id, space_ids, collapsed=False, key="ManagedSpaceID"):
    monitor = {
        "Display Identifier": display_id,
        "Spaces": [{key: space_id, "type": 0} for space_id in space_ids],
    }
    if collapsed:
        monitor["Collapsed Space"] = {"ManagedSpaceID": 1, "type": 0}
    return monitor


def make_blob(*monitors):
    return {"Management Data": {"Monitors": list(monitors)}}


class FakeHost(HostBridge):
    """Host bridge backed by plain attributes, recording activation commands."""

    def __init__(self, config_blob=None, active=None, screens=None):
        self.config_blob = config_blob if config_blob is not None else {}
        self.active = set(active or ())
        self.screens = list(screens or [])
        self.commands = []
        self.snapshot_reads = 0

    def read_configuration_snapshot(self):
        self.snapshot_reads += 1
        return self.config_blob

    def read_active_spaces(self):
        return set(self.active)

    def query_screens(self):
        return list(self.screens)

    def send_activation_command(self, index):
        self.commands.append(index)


@pytest.fixture
def two_display_blob():
    return make_blob(make_monitor("Main", [A, B, C]), make_monitor(SECONDARY_ID, [D, E]))


@pytest.fixture
def screens():
    return [
        Screen(is_primary=True, x=0, name="Built-in Retina Display"),
        Screen(is_primary=False, x=1512, name="DELL U2720Q"),
    ]


@pytest.fixture
def fake_host(two_display_blob, screens):
    return FakeHost(two_display_blob, active={B}, screens=screens)


@pytest.fixture
def config_manager(tmp_path):
    return ConfigManager(str(tmp_path / "config.json"))


@pytest.fixture
def name_store(config_manager):
    return NameStore(config_manager)
