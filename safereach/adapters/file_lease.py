"""File lease adapter — implements LeasePort with a JSON lock file.

The file records the holder's PID and when the lease was taken. A lease
older than its TTL belongs to a crashed run and is replaced.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from safereach.ports.lease_port import LeaseError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileLease:
    """Filesystem implementation of LeasePort."""

    def __init__(
        self,
        path: str | Path,
        ttl_seconds: int = 3600,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._path = Path(path)
        self._ttl = timedelta(seconds=ttl_seconds)
        self._now = now
        self._pid = os.getpid()
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def _read(self, path: Path | None = None) -> dict | None:
        path = path or self._path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise LeaseError(f"Cannot read lease file {path}: {exc}") from exc
        try:
            payload = json.loads(raw)
            payload["timestamp"] = datetime.fromisoformat(payload["timestamp"])
            if payload["timestamp"].tzinfo is None:
                raise ValueError("timestamp has no timezone")
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Lease file %s is unreadable (%s), treating as stale", path, exc)
            return {"pid": None, "timestamp": None}
        return payload

    def _payload(self) -> str:
        now = self._now()
        return json.dumps({
            "pid": self._pid,
            "timestamp": now.isoformat(),
            "expires_at": (now + self._ttl).isoformat(),
        })

    def _is_live(self, payload: dict) -> bool:
        taken_at = payload["timestamp"]
        return taken_at is not None and self._now() - taken_at <= self._ttl

    def _set_aside_stale(self) -> bool:
        """Move a stale lease out of the way, then re-check what was moved.

        Returns False if the moved file turned out to be a live lease taken
        by another run after our read; that lease is put back.
        """
        aside = self._path.with_name(f"{self._path.name}.{self._pid}.stale")
        try:
            os.replace(self._path, aside)
        except FileNotFoundError:
            return True
        except OSError as exc:
            raise LeaseError(f"Cannot remove stale lease {self._path}: {exc}") from exc

        try:
            moved = self._read(aside)
            if moved is not None and self._is_live(moved):
                logger.info(
                    "Lease %s was taken by PID %s meanwhile, backing off",
                    self._path, moved.get("pid"),
                )
                try:
                    os.link(aside, self._path)
                except FileExistsError:
                    pass
                except OSError as exc:
                    raise LeaseError(f"Cannot restore lease {self._path}: {exc}") from exc
                return False
            logger.warning("Removed stale lease %s (PID %s)", self._path, (moved or {}).get("pid"))
            return True
        finally:
            aside.unlink(missing_ok=True)

    def acquire(self) -> bool:
        """Take the lease. Returns False if a live holder already has it."""
        current = self._read()
        if current is not None:
            if self._is_live(current):
                logger.info(
                    "Lease %s held by PID %s since %s",
                    self._path, current.get("pid"), current["timestamp"].isoformat(),
                )
                return False
            if not self._set_aside_stale():
                return False

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            logger.info("Lease %s was taken by another process", self._path)
            return False
        except OSError as exc:
            raise LeaseError(f"Cannot create lease file {self._path}: {exc}") from exc

        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(self._payload())
        self._held = True
        logger.info("Lease acquired: %s (PID %d)", self._path, self._pid)
        return True

    def renew(self) -> None:
        """Push the lease expiry forward. Only the holder may renew."""
        if not self._held:
            raise LeaseError("Cannot renew a lease that is not held")
        try:
            self._path.write_text(self._payload(), encoding="utf-8")
        except OSError as exc:
            raise LeaseError(f"Cannot renew lease {self._path}: {exc}") from exc
        logger.debug("Lease renewed: %s", self._path)

    def release(self) -> None:
        """Drop the lease if this process holds it."""
        if not self._held:
            return
        current = self._read()
        if current is not None and current.get("pid") == self._pid:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as exc:
                raise LeaseError(f"Cannot remove lease {self._path}: {exc}") from exc
            logger.info("Lease released: %s", self._path)
        else:
            logger.warning("Lease %s no longer belongs to PID %d", self._path, self._pid)
        self._held = False
