"""ReplyRouter tests — correlation, ordering independence and shutdown.

Tests are organized into suites:
  - TestDelivery: push-before-pop, pop-before-push, slot cleanup
  - TestCorrelation: many concurrent waiters, shuffled arrival order
  - TestTimeout: abandoned requests and late replies
  - TestClose: broadcast failure to pending and future waiters

Run: python -m pytest tests/test_router.py -v
"""

import os
import random
import sys
import threading
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from mpvipc import ReplyRouter, ConnectionError, TimeoutError


def _pop_in_thread(router, request_id, results, timeout=None):
    def run():
        try:
            results[request_id] = router.pop(request_id, timeout)
        except Exception as e:  # recorded for the assertion
            results[request_id] = e
    t = threading.Thread(target=run, daemon=True)
    t.start()
    return t


class TestDelivery:
    def test_push_before_pop(self):
        router = ReplyRouter()
        router.push(1, "reply-1")
        assert router.pop(1) == "reply-1"

    def test_pop_before_push(self):
        router = ReplyRouter()
        results = {}
        t = _pop_in_thread(router, 7, results)
        time.sleep(0.05)
        assert t.is_alive()
        router.push(7, "reply-7")
        t.join(timeout=2)
        assert results[7] == "reply-7"

    def test_slot_removed_after_pop(self):
        router = ReplyRouter()
        router.push(3, "x")
        assert router.pending == 1
        router.pop(3)
        assert router.pending == 0

    def test_duplicate_push_keeps_first(self):
        router = ReplyRouter()
        router.push(2, "first")
        router.push(2, "second")
        assert router.pop(2) == "first"


class TestCorrelation:
    def test_each_waiter_gets_its_own_reply(self):
        router = ReplyRouter()
        ids = list(range(1, 51))
        results = {}
        threads = [_pop_in_thread(router, i, results) for i in ids]

        shuffled = ids[:]
        random.Random(1234).shuffle(shuffled)
        for i in shuffled:
            router.push(i, {"request_id": i})

        for t in threads:
            t.join(timeout=2)
        assert all(results[i] == {"request_id": i} for i in ids)
        assert router.pending == 0

    def test_mixed_push_pop_order(self):
        router = ReplyRouter()
        results = {}
        early = [i for i in range(1, 21) if i % 2]
        late = [i for i in range(1, 21) if not i % 2]
        for i in early:
            router.push(i, i * 10)
        threads = [_pop_in_thread(router, i, results) for i in range(1, 21)]
        for i in late:
            router.push(i, i * 10)
        for t in threads:
            t.join(timeout=2)
        assert results == {i: i * 10 for i in range(1, 21)}


class TestTimeout:
    def test_pop_times_out(self):
        router = ReplyRouter()
        with pytest.raises(TimeoutError):
            router.pop(5, timeout=0.05)
        assert router.pending == 0

    def test_late_reply_is_discarded(self):
        router = ReplyRouter()
        with pytest.raises(TimeoutError):
            router.pop(5, timeout=0.05)
        router.push(5, "too late")
        assert router.pending == 0

    def test_reply_within_timeout(self):
        router = ReplyRouter()
        threading.Timer(0.02, router.push, args=(9, "ok")).start()
        assert router.pop(9, timeout=2.0) == "ok"


class TestClose:
    def test_pending_waiters_fail(self):
        router = ReplyRouter()
        results = {}
        threads = [_pop_in_thread(router, i, results) for i in (1, 2, 3)]
        time.sleep(0.05)
        router.close(ConnectionError("gone"))
        for t in threads:
            t.join(timeout=2)
        assert all(isinstance(results[i], ConnectionError) for i in (1, 2, 3))
        assert router.closed

    def test_pop_after_close_fails_immediately(self):
        router = ReplyRouter()
        router.close(ConnectionError("gone"))
        with pytest.raises(ConnectionError):
            router.pop(42)

    def test_delivered_reply_survives_close(self):
        router = ReplyRouter()
        router.push(4, "arrived")
        router.close(ConnectionError("gone"))
        assert router.pop(4) == "arrived"

    def test_close_is_idempotent(self):
        router = ReplyRouter()
        router.close(ConnectionError("first"))
        router.close(ConnectionError("second"))
        with pytest.raises(ConnectionError, match="first"):
            router.pop(1)
