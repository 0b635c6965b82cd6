"""Session — one open cache: backing path, root node, dirty flag, save loop.

Threads involved per Session:
- caller threads mutate nodes (marking dirty under `lock`);
- a daemon threading.Timer fires every `save_period` seconds and dispatches
  save();
- a single background writer (ThreadPoolExecutor, one worker) encodes and
  writes snapshots in the order they were taken.

A snapshot clears the dirty flag and copies the tree in one step under
`lock`. A mutation made after that is only captured by the next save.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Iterator

from jsoncache import _io, _registry
from jsoncache.errors import CacheError
from jsoncache.nodes import CacheDict, CacheList, CacheRecord, unwrap, wrap

logger = logging.getLogger("jsoncache.session")


class Session:
    """One open cache bound to a backing file."""

    def __init__(self, path: str, *, save_period: float, dict_mode: bool = False) -> None:
        self.path = path
        self.save_period = save_period
        self.dict_mode = dict_mode
        self.record_type = CacheDict if dict_mode else CacheRecord
        self.lock = threading.RLock()
        self.root: CacheDict | CacheList | None = None
        self.dirty = False
        self.closed = False
        self._timer: threading.Timer | None = None
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="jsoncache-writer")
        self._write_lock = threading.Lock()
        self._generation = 0
        self._written_generation = 0

    # --- Load ---

    def load(self) -> None:
        """Build the root from the backing file, or an empty record if there is none."""
        if _io.exists(self.path):
            data: Any = _io.read_document(self.path)
            logger.debug("Loaded cache %s", self.path)
        else:
            data = {}
        self.root = wrap(data, self)

    def mark_dirty(self) -> None:
        self.dirty = True

    # --- Persistence ---

    def _snapshot(self) -> tuple[int, Any] | None:
        """Clear the dirty flag and copy the tree, atomically. None when clean."""
        with self.lock:
            if not self.dirty:
                return None
            self.dirty = False
            self._generation += 1
            return self._generation, unwrap(self.root)

    def _write(self, generation: int, data: Any) -> None:
        with self._write_lock:
            if generation <= self._written_generation:
                logger.debug("Skipping stale snapshot %d of %s", generation, self.path)
                return
            _io.write_document(self.path, data)
            self._written_generation = generation
            logger.debug("Saved snapshot %d of %s", generation, self.path)

    def save(self) -> Future | None:
        """Write the tree in the background if dirty.

        Returns the write's Future, or None if there was nothing to save.
        """
        if self.closed:
            raise CacheError(f"cache {self.path} is closed")
        snapshot = self._snapshot()
        if snapshot is None:
            return None
        try:
            return self._writer.submit(self._write, *snapshot)
        except RuntimeError:
            # The writer stops accepting work at interpreter shutdown.
            self._write(*snapshot)
            return None

    def save_sync(self) -> bool:
        """Write the tree in the calling thread if dirty. Returns whether it wrote."""
        snapshot = self._snapshot()
        if snapshot is None:
            return False
        self._write(*snapshot)
        return True

    # --- Periodic loop ---

    def start(self) -> None:
        with self.lock:
            if not self.closed:
                self._schedule()

    def _schedule(self) -> None:
        timer = threading.Timer(self.save_period, self._tick)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self) -> None:
        future = None
        with self.lock:
            if self.closed:
                return
            try:
                future = self.save()
            except Exception:
                logger.exception("Periodic save of %s failed", self.path)
            self._schedule()
        if future is not None:
            future.add_done_callback(self._report_background_failure)

    def _report_background_failure(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Dropped background save of %s", self.path, exc_info=exc)

    # --- Shutdown ---

    def _close_common(self) -> bool:
        """Stop the timer and deregister. False if already closed."""
        with self.lock:
            if self.closed:
                return False
            self.closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        _registry.discard(self)
        return True

    def close(self) -> None:
        """Stop saving, wait for queued writes, then flush if dirty.

        Errors from the final write propagate. Closing twice is a no-op.
        """
        if not self._close_common():
            return
        self._writer.shutdown(wait=True)
        self.save_sync()
        logger.debug("Closed cache %s", self.path)

    def close_sync(self) -> None:
        """Like close(), but never waits on the background writer.

        For shutdown paths where the interpreter no longer runs new work on
        other threads. A queued write older than this flush is skipped.
        """
        if not self._close_common():
            return
        self._writer.shutdown(wait=False)
        self.save_sync()
        logger.debug("Closed cache %s", self.path)

    # --- Batching ---

    @contextmanager
    def batch(self) -> Iterator[CacheDict | CacheList]:
        """Hold the Session lock so no snapshot falls between these mutations.

        Usage:
            with session.batch() as root:
                root["count"] += 1
                root["history"].append(root["count"])
        """
        with self.lock:
            yield self.root

    def __repr__(self) -> str:
        state = "closed" if self.closed else ("dirty" if self.dirty else "clean")
        return f"Session({self.path!r}, {state})"
