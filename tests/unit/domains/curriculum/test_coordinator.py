# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the single-flight sync coordinator."""

import threading

import pytest

from src.domains.curriculum.coordinator import SyncCoordinator, get_sync_coordinator


class TestSyncCoordinator:
    """Tests for SyncCoordinator."""

    def test_initial_state(self, coordinator):
        assert coordinator.is_running is False
        assert coordinator.last_sync_time is None
        assert coordinator.status() == {"isRunning": False, "lastSyncTime": None}

    def test_second_acquire_refused(self, coordinator):
        assert coordinator.try_acquire() is True
        assert coordinator.try_acquire() is False
        assert coordinator.is_running is True

    def test_release_records_time(self, coordinator):
        coordinator.try_acquire()
        coordinator.release()

        assert coordinator.is_running is False
        assert coordinator.last_sync_time is not None
        assert coordinator.status()["lastSyncTime"] == coordinator.last_sync_time.isoformat()

    @pytest.mark.asyncio
    async def test_hold_releases_on_exit(self, coordinator):
        async with coordinator.hold() as acquired:
            assert acquired is True
            assert coordinator.is_running is True

        assert coordinator.is_running is False

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self, coordinator):
        with pytest.raises(RuntimeError):
            async with coordinator.hold():
                raise RuntimeError("boom")

        assert coordinator.is_running is False

    @pytest.mark.asyncio
    async def test_contended_hold_keeps_lock(self, coordinator):
        """A refused holder must not release the running holder's lock."""
        async with coordinator.hold() as first:
            async with coordinator.hold() as second:
                assert second is False
            assert first is True
            assert coordinator.is_running is True

        assert coordinator.last_sync_time is not None

    def test_single_winner_across_threads(self, coordinator):
        barrier = threading.Barrier(8)
        results: list[bool] = []
        results_lock = threading.Lock()

        def contend():
            barrier.wait()
            acquired = coordinator.try_acquire()
            with results_lock:
                results.append(acquired)

        threads = [threading.Thread(target=contend) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1


def test_process_wide_instance():
    assert get_sync_coordinator() is get_sync_coordinator()
    assert isinstance(get_sync_coordinator(), SyncCoordinator)
