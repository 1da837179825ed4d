"""Live activity overlay tests."""

from unittest.mock import MagicMock

from spaceswitcher.activity_source import ActivitySource, overlay_activity
from spaceswitcher.topology_reader import TopologyReader

from .conftest import A, B, C, D, E


def current_ids(displays):
    return {s.id for d in displays for s in d.spaces if s.is_current}


def test_only_active_space_is_current(two_display_blob) -> None:
    displays = TopologyReader().read(two_display_blob, [])

    overlaid = overlay_activity(displays, {B})

    assert current_ids(overlaid) == {B}
    flags = {s.id: s.is_current for d in overlaid for s in d.spaces}
    assert flags == {A: False, B: True, C: False, D: False, E: False}


def test_one_current_space_per_display(two_display_blob) -> None:
    displays = TopologyReader().read(two_display_blob, [])

    overlaid = overlay_activity(displays, {C, D})

    assert [d.current_space.id for d in overlaid] == [C, D]


def test_overlay_does_not_mutate_input(two_display_blob) -> None:
    displays = TopologyReader().read(two_display_blob, [])

    overlay_activity(displays, {A})

    assert current_ids(displays) == set()


def test_empty_live_set_marks_nothing_current(two_display_blob) -> None:
    displays = TopologyReader().read(two_display_blob, [])

    overlaid = overlay_activity(displays, set())

    assert current_ids(overlaid) == set()
    assert all(d.current_space is None for d in overlaid)


def test_unavailable_host_api_degrades_to_empty_set() -> None:
    host = MagicMock()
    host.read_active_spaces.side_effect = OSError("SkyLight not loaded")

    assert ActivitySource(host).active_spaces() == set()


def test_host_returning_none_is_empty() -> None:
    host = MagicMock()
    host.read_active_spaces.return_value = None

    assert ActivitySource(host).active_spaces() == set()
