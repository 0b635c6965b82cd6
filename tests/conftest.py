"""Shared fixtures: no cache outlives the test that opened it."""

import json
import time

import pytest

from jsoncache import _registry
from jsoncache.session import Session


@pytest.fixture(autouse=True)
def _close_leftover_caches():
    yield
    for session in _registry.live_sessions():
        try:
            session.close_sync()
        except OSError:
            pass  # tests that point caches at unwritable paths


@pytest.fixture
def session(tmp_path):
    """A loaded Session whose timer is never started."""
    s = Session(str(tmp_path / "cache.json"), save_period=60)
    s.load()
    yield s
    s.close_sync()


def read_json(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def wait_for(predicate, timeout=2.0):
    """Poll predicate until it is truthy or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return bool(predicate())
