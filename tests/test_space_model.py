"""SpaceModel aggregate tests: refresh, labels and switching."""

from unittest.mock import MagicMock

import pytest

from spaceswitcher.models import ModelState, Screen
from spaceswitcher.space_model import SpaceModel

from .conftest import A, B, C, D, E, SECONDARY_ID, FakeHost, make_blob, make_monitor


class RecordingScheduler:
    def __init__(self):
        self.calls = []

    def __call__(self, delay, callback):
        self.calls.append((delay, callback))


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def model(fake_host, name_store, scheduler):
    return SpaceModel(fake_host, name_store, scheduler=scheduler)


def test_stale_before_first_refresh(model, fake_host) -> None:
    assert model.state is ModelState.STALE
    assert model.displays == ()
    assert model.label_for(A) == ""
    assert fake_host.snapshot_reads == 0


def test_refresh_publishes_displays(model) -> None:
    assert model.refresh() is True

    assert model.state is ModelState.FRESH
    assert [d.id for d in model.displays] == ["Main", SECONDARY_ID]
    current = [s.id for d in model.displays for s in d.spaces if s.is_current]
    assert current == [B]


def test_refresh_without_changes_keeps_snapshot(model) -> None:
    model.refresh()
    first = model.displays

    assert model.refresh() is False
    assert model.displays is first


def test_listeners_only_see_changes(model, fake_host) -> None:
    listener = MagicMock()
    model.subscribe(listener)

    model.refresh()
    model.refresh()
    fake_host.active = {C}
    model.refresh()

    assert listener.call_count == 2


def test_displays_sorted_left_to_right(fake_host, name_store) -> None:
    fake_host.screens = [
        Screen(is_primary=True, x=0, name="Built-in"),
        Screen(is_primary=False, x=-2560, name="Left"),
    ]
    model = SpaceModel(fake_host, name_store)

    model.refresh()

    assert [d.name for d in model.displays] == ["Left", "Built-in"]


def test_empty_snapshot_is_fresh_and_empty(name_store) -> None:
    model = SpaceModel(FakeHost({}), name_store)

    assert model.refresh() is False
    assert model.state is ModelState.FRESH
    assert model.displays == ()


def test_host_failures_degrade_to_empty(name_store) -> None:
    host = MagicMock()
    host.read_configuration_snapshot.side_effect = RuntimeError("defaults missing")
    host.query_screens.side_effect = RuntimeError("no screens")
    host.read_active_spaces.side_effect = RuntimeError("no SkyLight")
    model = SpaceModel(host, name_store)

    model.refresh()

    assert model.state is ModelState.FRESH
    assert model.displays == ()
    assert model.switch_to_space(A) is False
    host.send_activation_command.assert_not_called()


def test_label_falls_back_to_position(model, name_store) -> None:
    model.refresh()
    name_store.set(C, "Music")

    assert model.label_for(A) == "1"
    assert model.label_for(C) == "Music"
    assert model.label_for(E) == "2"


def test_rename_blank_clears_label(model, name_store) -> None:
    model.refresh()
    model.rename(A, "  Mail  ")
    assert name_store.get(A) == "Mail"

    model.rename(A, "   ")

    assert name_store.get(A) is None
    assert model.label_for(A) == "1"


def test_reset_names(model) -> None:
    model.refresh()
    model.rename(A, "Mail")
    model.rename(D, "Docs")

    model.reset_names()

    assert model.label_for(A) == "1"
    assert model.label_for(D) == "1"


def test_switch_to_space_sends_global_index(model, fake_host, scheduler) -> None:
    model.refresh()

    assert model.switch_to_space(D) is True

    assert fake_host.commands == [4]
    assert len(scheduler.calls) == 1
    assert scheduler.calls[0][0] == pytest.approx(0.3)


def test_switch_to_space_reads_fresh_topology(fake_host, name_store) -> None:
    # secondary screen is left of main, so the published view lists it first
    fake_host.screens = [
        Screen(is_primary=True, x=0, name="Built-in"),
        Screen(is_primary=False, x=-2560, name="Left"),
    ]
    model = SpaceModel(fake_host, name_store)
    model.refresh()
    reads = fake_host.snapshot_reads
    assert model.displays[0].id == SECONDARY_ID

    model.switch_to_space(D)

    assert fake_host.snapshot_reads == reads + 1
    assert fake_host.commands == [4]


def test_switch_uses_topology_at_switch_time(model, fake_host) -> None:
    model.refresh()
    # a space was added to the main display since the last refresh
    fake_host.config_blob = make_blob(
        make_monitor("Main", [A, B, C, 104]), make_monitor(SECONDARY_ID, [D, E])
    )

    model.switch_to_space(D)

    assert fake_host.commands == [5]


def test_switch_to_unknown_space_is_noop(model, fake_host, scheduler) -> None:
    model.refresh()

    assert model.switch_to_space(999) is False

    assert fake_host.commands == []
    assert scheduler.calls == []


def test_switch_to_space_beyond_tenth_slot_is_noop(name_store) -> None:
    host = FakeHost(make_blob(make_monitor("Main", range(1, 13))))
    model = SpaceModel(host, name_store)
    model.refresh()

    assert model.switch_to_space(10) is True
    assert model.switch_to_space(11) is False
    assert host.commands == [10]


def test_switch_to_index(model, fake_host) -> None:
    model.refresh()
    reads = fake_host.snapshot_reads

    assert model.switch_to_index(5) is True

    assert fake_host.commands == [5]
    assert fake_host.snapshot_reads == reads


@pytest.mark.parametrize("index", [0, 6, 11, -1, True, "2", None])
def test_switch_to_invalid_index_is_noop(model, fake_host, scheduler, index) -> None:
    model.refresh()

    assert model.switch_to_index(index) is False

    assert fake_host.commands == []
    assert scheduler.calls == []


def test_follow_up_refresh_updates_activity(model, fake_host, scheduler) -> None:
    model.refresh()
    model.switch_to_space(E)
    fake_host.active = {A, E}

    _, callback = scheduler.calls[0]
    callback()

    current = {s.id for d in model.displays for s in d.spaces if s.is_current}
    assert current == {A, E}


def test_follow_up_after_close_is_ignored(model, fake_host, scheduler) -> None:
    model.refresh()
    model.switch_to_space(A)
    snapshot = model.displays
    fake_host.active = {C}

    model.close()
    _, callback = scheduler.calls[0]
    callback()

    assert model.displays is snapshot
    assert model.switch_to_space(A) is False
    assert model.switch_to_index(1) is False
    assert model.refresh() is False


def test_without_scheduler_no_follow_up(fake_host, name_store) -> None:
    model = SpaceModel(fake_host, name_store)
    model.refresh()

    assert model.switch_to_index(1) is True
    assert fake_host.commands == [1]


def test_switch_survives_failing_scheduler(fake_host, name_store) -> None:
    scheduler = MagicMock(side_effect=TypeError("bad delay"))
    model = SpaceModel(fake_host, name_store, scheduler=scheduler)
    model.refresh()

    assert model.switch_to_space(D) is True

    assert fake_host.commands == [4]
    scheduler.assert_called_once()
