from __future__ import annotations

import threading
from typing import BinaryIO, Optional


class ChildInputHandle:
    """The child's stdin, shared by the relay and the shutdown path under one lock.

    ``write`` holds the lock for a single write+flush. ``claim`` takes the
    lock permanently: the returned ``HandleClaim`` is the only writer from
    then on and the lock is never released, so any relay write still
    pending blocks for the rest of the process lifetime.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()
        self._claim: Optional[HandleClaim] = None

    @property
    def claimed(self) -> bool:
        return self._claim is not None

    def write(self, data: bytes) -> None:
        """Write and flush ``data`` while holding the lock."""
        with self._lock:
            self._write_locked(data)

    def claim(self) -> HandleClaim:
        """Acquire the lock for good, blocking until any in-flight write finishes."""
        if self._claim is not None:
            raise RuntimeError("Child input handle is already claimed.")
        self._lock.acquire()
        # Kept on the handle so the guard outlives the caller's frame.
        self._claim = HandleClaim(self)
        return self._claim

    def _write_locked(self, data: bytes) -> None:
        self._stream.write(data)
        self._stream.flush()


class HandleClaim:
    """Exclusive, never-released write access to a ChildInputHandle."""

    def __init__(self, handle: ChildInputHandle) -> None:
        self._handle = handle

    def write(self, data: bytes) -> None:
        self._handle._write_locked(data)
