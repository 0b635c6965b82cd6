"""Shutdown hooks — flush every open cache when the process ends.

flush_all() is the entry point. The first open() registers it with atexit;
install_signal_handlers() is opt-in, since signal handling belongs to the
embedding application. Both registrations last for the life of the process.
"""

from __future__ import annotations

import atexit
import logging
import signal

from jsoncache import _registry

logger = logging.getLogger("jsoncache.lifecycle")


def flush_all() -> None:
    """Close every open cache, writing synchronously in the calling thread.

    A failure on one cache is logged and does not stop the others.
    """
    for session in _registry.live_sessions():
        try:
            session.close_sync()
        except Exception:
            logger.exception("Failed to flush cache %s on shutdown", session.path)


def install_exit_hook() -> None:
    """Register flush_all() with atexit, once per process."""
    with _registry.lock:
        if _registry.exit_hook_installed:
            return
        atexit.register(flush_all)
        _registry.exit_hook_installed = True


def install_signal_handlers(signals=(signal.SIGINT, signal.SIGTERM)) -> None:
    """Flush all caches on each of signals, then defer to the previous handler.

    Must be called from the main thread. Signals already handled here are
    skipped.
    """
    for signum in signals:
        with _registry.lock:
            if signum in _registry.signal_handlers:
                continue
            previous = signal.getsignal(signum)
            signal.signal(signum, _chain(previous))
            _registry.signal_handlers.add(signum)


def _chain(previous):
    def _handler(signum, frame):
        logger.debug("Signal %d: flushing open caches", signum)
        flush_all()
        if callable(previous):
            previous(signum, frame)
        elif previous != signal.SIG_IGN:
            # Default disposition: restore it and re-deliver.
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)

    return _handler
