"""Registry — process-wide state shared by every open cache.

Plain module-level structures, in the same spirit as a data anchor: the
behavior modules (cache, session, lifecycle) read and write these, but own
none of them.

Invariant: `sessions` holds at most one live Session per absolute path.
`lock` is held for the whole of open(), so two threads opening the same
new path never load it twice.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jsoncache.session import Session

# absolute path -> live Session
sessions: dict[str, Session] = {}

lock = threading.RLock()

# Process-lifetime guards, never reset outside tests.
exit_hook_installed: bool = False
signal_handlers: set[int] = set()


def discard(session: Session) -> None:
    """Drop session from the registry if it is still the one registered."""
    with lock:
        if sessions.get(session.path) is session:
            del sessions[session.path]


def live_sessions() -> list[Session]:
    with lock:
        return list(sessions.values())
