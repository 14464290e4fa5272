"""Tests for the in-flight de-duplication set."""

import asyncio

import pytest

from taskapi.worker.in_flight import InFlightSet


@pytest.mark.unit
async def test_mark_only_once() -> None:
    """Test the second mark of an id reports it as already present."""
    in_flight = InFlightSet()

    assert await in_flight.mark("a") is True
    assert await in_flight.mark("a") is False
    assert "a" in in_flight
    assert len(in_flight) == 1


@pytest.mark.unit
async def test_discard_allows_mark_again() -> None:
    """Test an evicted id can be marked by a later scan."""
    in_flight = InFlightSet()
    await in_flight.mark("a")

    await in_flight.discard("a")
    await in_flight.discard("missing")

    assert "a" not in in_flight
    assert await in_flight.mark("a") is True


@pytest.mark.unit
async def test_concurrent_marks_admit_one() -> None:
    """Test concurrent marks of the same id let exactly one through."""
    in_flight = InFlightSet()

    results = await asyncio.gather(*(in_flight.mark("a") for _ in range(10)))

    assert results.count(True) == 1
