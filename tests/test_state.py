"""Tests for session phases and the state cell."""

from __future__ import annotations

import threading

from libsteamcmd.state import (
    Failed,
    LoggedIn,
    LoggedOut,
    Loading,
    SessionState,
    StateCell,
    Terminated,
)


def test_phase_equality() -> None:
    assert LoggedOut() == LoggedOut()
    assert LoggedOut() != LoggedIn()
    assert Failed() != LoggedOut()
    assert Loading(1, 2) == Loading(1, 2)
    assert Loading(1, 2) != Loading(2, 2)
    assert Terminated("boom") != Terminated("bang")
    assert len({LoggedIn(), LoggedIn(), Loading(0, 0)}) == 2


def test_loading_markers() -> None:
    """Negative totals mark what the enumeration still waits for."""
    assert Loading(0, -2).awaiting_account
    assert Loading(0, -1).awaiting_licenses
    assert not Loading(0, -1).is_complete
    assert Loading(0, 0).is_complete
    assert not Loading(2, 5).is_complete


def test_state_cell_versions() -> None:
    """Every write produces a new snapshot with a higher version."""
    cell = StateCell()
    first = cell.get()

    second = cell.update(phase=Loading(0, 0))

    assert first == SessionState()
    assert first.phase == LoggedOut()
    assert second.version == first.version + 1
    assert cell.get() is second
    assert cell.update(catalog=()).phase == Loading(0, 0)


def test_state_cell_concurrent_readers() -> None:
    """Readers only ever observe whole snapshots."""
    cell = StateCell()
    seen: list[SessionState] = []
    done = threading.Event()

    def read() -> None:
        while not done.is_set():
            seen.append(cell.get())

    reader = threading.Thread(target=read)
    reader.start()
    for i in range(100):
        cell.update(phase=Loading(i, 100))
    done.set()
    reader.join()

    for state in seen:
        phase = state.phase
        assert state.version == 0 or (
            isinstance(phase, Loading) and phase.done == state.version - 1
        )
