"""IdAllocator tests — ordering, wraparound and thread safety.

Tests are organized into suites:
  - TestSequence: monotonic allocation from the configured minimum
  - TestWraparound: wrap to minimum, never zero
  - TestValidation: rejected ranges
  - TestConcurrency: no duplicates under contention

Run: python -m pytest tests/test_ids.py -v
"""

import os
import sys
import threading

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from mpvipc import IdAllocator
from mpvipc import _protocol as P


class TestSequence:
    def test_starts_at_minimum(self):
        assert IdAllocator().next() == P.ID_MIN
        assert IdAllocator(minimum=10, maximum=20).next() == 10

    def test_strictly_increasing(self):
        ids = IdAllocator()
        values = [ids.next() for _ in range(100)]
        assert values == list(range(1, 101))

    def test_iterator_protocol(self):
        ids = IdAllocator()
        assert next(ids) == 1
        assert next(ids) == 2

    def test_default_range_fits_int64(self):
        ids = IdAllocator()
        assert ids.minimum == 1
        assert ids.maximum == 2 ** 63 - 1


class TestWraparound:
    def test_wraps_to_minimum_after_maximum(self):
        ids = IdAllocator(minimum=1, maximum=3)
        assert [ids.next() for _ in range(7)] == [1, 2, 3, 1, 2, 3, 1]

    def test_never_produces_zero(self):
        ids = IdAllocator(minimum=1, maximum=5)
        values = [ids.next() for _ in range(1000)]
        assert 0 not in values
        assert min(values) == 1

    def test_distinct_within_one_cycle(self):
        ids = IdAllocator(minimum=5, maximum=104)
        values = [ids.next() for _ in range(100)]
        assert len(set(values)) == 100


class TestValidation:
    def test_rejects_zero_minimum(self):
        with pytest.raises(ValueError):
            IdAllocator(minimum=0)

    def test_rejects_negative_minimum(self):
        with pytest.raises(ValueError):
            IdAllocator(minimum=-5, maximum=5)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            IdAllocator(minimum=10, maximum=9)


class TestConcurrency:
    def test_no_duplicates_across_threads(self):
        ids = IdAllocator()
        results = [[] for _ in range(8)]

        def worker(out):
            for _ in range(1000):
                out.append(ids.next())

        threads = [threading.Thread(target=worker, args=(r,)) for r in results]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        allocated = [v for r in results for v in r]
        assert len(allocated) == 8000
        assert len(set(allocated)) == 8000
        assert all(r == sorted(r) for r in results)
