"""Tests for safereach.adapters.file_lease — FileLease."""

import json
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from safereach.adapters.file_lease import FileLease
from safereach.ports.lease_port import LeaseError

T0 = datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
def lock_path(tmp_path):
    return tmp_path / "reminder-cron.lock"


class TestAcquire:
    def test_acquire_creates_file(self, lock_path):
        lease = FileLease(lock_path, now=lambda: T0)
        assert lease.acquire() is True
        assert lease.held is True
        payload = json.loads(lock_path.read_text())
        assert payload["pid"] == os.getpid()
        assert datetime.fromisoformat(payload["timestamp"]) == T0
        assert datetime.fromisoformat(payload["expires_at"]) == T0 + timedelta(hours=1)

    def test_live_lease_blocks_second_holder(self, lock_path):
        FileLease(lock_path, now=lambda: T0).acquire()
        other = FileLease(lock_path, now=lambda: T0 + timedelta(minutes=59))
        assert other.acquire() is False
        assert other.held is False

    def test_lease_at_exact_ttl_is_still_live(self, lock_path):
        FileLease(lock_path, ttl_seconds=3600, now=lambda: T0).acquire()
        other = FileLease(lock_path, ttl_seconds=3600, now=lambda: T0 + timedelta(hours=1))
        assert other.acquire() is False

    def test_stale_lease_is_replaced(self, lock_path):
        FileLease(lock_path, now=lambda: T0).acquire()
        later = T0 + timedelta(hours=2)
        other = FileLease(lock_path, now=lambda: later)
        assert other.acquire() is True
        payload = json.loads(lock_path.read_text())
        assert datetime.fromisoformat(payload["timestamp"]) == later

    def test_corrupt_lease_is_treated_as_stale(self, lock_path):
        lock_path.write_text("not json")
        lease = FileLease(lock_path, now=lambda: T0)
        assert lease.acquire() is True

    def test_naive_timestamp_is_treated_as_stale(self, lock_path):
        lock_path.write_text(json.dumps({"pid": 1, "timestamp": "2024-03-15T02:00:00"}))
        lease = FileLease(lock_path, now=lambda: T0)
        assert lease.acquire() is True
        assert json.loads(lock_path.read_text())["pid"] == os.getpid()

    def test_stale_replacement_leaves_no_aside_file(self, lock_path):
        FileLease(lock_path, now=lambda: T0).acquire()
        FileLease(lock_path, now=lambda: T0 + timedelta(hours=2)).acquire()
        assert list(lock_path.parent.glob("*.stale")) == []

    def test_stale_lease_retaken_meanwhile_is_put_back(self, lock_path):
        FileLease(lock_path, now=lambda: T0).acquire()
        later = T0 + timedelta(hours=2)
        real_replace = os.replace

        def retaken_then_replace(src, dst):
            # another run replaced the stale lease between our read and our move
            lock_path.write_text(json.dumps({"pid": 4242, "timestamp": later.isoformat()}))
            real_replace(src, dst)

        lease = FileLease(lock_path, now=lambda: later)
        with patch("safereach.adapters.file_lease.os.replace", side_effect=retaken_then_replace):
            assert lease.acquire() is False

        assert lease.held is False
        assert json.loads(lock_path.read_text())["pid"] == 4242
        assert list(lock_path.parent.glob("*.stale")) == []

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "run" / "batch.lock"
        assert FileLease(path, now=lambda: T0).acquire() is True
        assert path.exists()


class TestRenew:
    def test_renew_pushes_timestamp(self, lock_path):
        times = iter([T0, T0 + timedelta(minutes=30)])
        lease = FileLease(lock_path, now=lambda: next(times))
        lease.acquire()
        lease.renew()
        payload = json.loads(lock_path.read_text())
        assert datetime.fromisoformat(payload["timestamp"]) == T0 + timedelta(minutes=30)

    def test_renew_without_holding_raises(self, lock_path):
        with pytest.raises(LeaseError):
            FileLease(lock_path, now=lambda: T0).renew()


class TestRelease:
    def test_release_removes_file(self, lock_path):
        lease = FileLease(lock_path, now=lambda: T0)
        lease.acquire()
        lease.release()
        assert not lock_path.exists()
        assert lease.held is False

    def test_release_when_not_held_leaves_file(self, lock_path):
        FileLease(lock_path, now=lambda: T0).acquire()
        other = FileLease(lock_path, now=lambda: T0)
        other.acquire()
        other.release()
        assert lock_path.exists()

    def test_release_does_not_remove_foreign_lease(self, lock_path):
        lease = FileLease(lock_path, now=lambda: T0)
        lease.acquire()
        lock_path.write_text(json.dumps({"pid": -1, "timestamp": T0.isoformat()}))
        lease.release()
        assert lock_path.exists()
        assert lease.held is False

    def test_reacquire_after_release(self, lock_path):
        lease = FileLease(lock_path, now=lambda: T0)
        lease.acquire()
        lease.release()
        assert FileLease(lock_path, now=lambda: T0).acquire() is True
