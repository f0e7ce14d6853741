import pytest

from src.sunday_attendance.sunday_attendance.cache.query_cache import (
    MUTATION_RETRY,
    QUERY_RETRY,
    QueryCache,
    RetryPolicy,
)
from src.sunday_attendance.sunday_attendance.core.exceptions import DataAccessError, ValidationError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class Flaky:
    """Fails ``failures`` times before returning ``value``."""

    def __init__(self, failures, value="ok"):
        self.failures = failures
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise DataAccessError(f"Failed to fetch things: attempt {self.calls}")
        return self.value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def cache(clock, sleeps):
    return QueryCache(stale_time=60, clock=clock, sleep=sleeps.append)


def test_query_delays_double_and_are_capped():
    assert [QUERY_RETRY.delay(i) for i in range(3)] == [1.0, 2.0, 4.0]
    assert RetryPolicy(retries=10).delay(8) == 30.0
    assert [MUTATION_RETRY.delay(i) for i in range(2)] == [1.0, 1.0]


def test_fresh_reads_are_served_from_memory(cache, clock):
    loader = Flaky(0, value=["Ana"])
    assert cache.fetch(("teachers",), loader) == ["Ana"]
    clock.now = 59
    assert cache.fetch(("teachers",), loader) == ["Ana"]
    assert loader.calls == 1

    clock.now = 61
    cache.fetch(("teachers",), loader)
    assert loader.calls == 2


def test_query_retries_then_succeeds(cache, sleeps):
    loader = Flaky(2)
    assert cache.fetch(("students", "active"), loader) == "ok"
    assert loader.calls == 3
    assert sleeps == [1.0, 2.0]


def test_query_error_surfaces_after_last_retry(cache, sleeps):
    loader = Flaky(10)
    with pytest.raises(DataAccessError, match="attempt 4"):
        cache.fetch(("students",), loader)
    assert loader.calls == 4
    assert sleeps == [1.0, 2.0, 4.0]
    assert ("students",) not in cache


def test_non_data_errors_are_not_retried(cache, sleeps):
    def boom():
        raise ValidationError("bad input")

    with pytest.raises(ValidationError):
        cache.fetch(("students",), boom)
    assert sleeps == []


def test_mutation_retries_with_fixed_delay_and_invalidates(cache, sleeps):
    cache.fetch(("attendance", 1), lambda: "old")
    cache.fetch(("attendance", 2), lambda: "old")
    cache.fetch(("lessons",), lambda: "kept")

    write = Flaky(2, value=3)
    assert cache.mutate(write, invalidates=["attendance"]) == 3
    assert sleeps == [1.0, 1.0]
    assert ("attendance", 1) not in cache
    assert ("attendance", 2) not in cache
    assert ("lessons",) in cache


def test_failed_mutation_keeps_cache(cache):
    cache.fetch(("attendance", 1), lambda: "old")
    with pytest.raises(DataAccessError):
        cache.mutate(Flaky(5), invalidates=["attendance"])
    assert ("attendance", 1) in cache
