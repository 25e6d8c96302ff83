"""
Tests for the availability ledger, including concurrency scenarios.
"""

import asyncio

import pytest

from bus_booking.domain.exceptions import InsufficientSeats, TripNotFound, ValidationError
from conftest import make_draft


@pytest.mark.asyncio
async def test_available_seats_starts_at_capacity(ledger, small_trip):
    assert await ledger.available_seats(small_trip) == 10


@pytest.mark.asyncio
async def test_available_seats_unknown_trip(ledger):
    with pytest.raises(TripNotFound):
        await ledger.available_seats("nope")


@pytest.mark.asyncio
async def test_try_reserve_decrements_availability(ledger, small_trip):
    entry = await ledger.try_reserve(small_trip, 3)

    assert entry.seats_reserved == 3
    assert await ledger.available_seats(small_trip) == 7


@pytest.mark.asyncio
async def test_try_reserve_insufficient_reports_remaining(ledger, small_trip):
    await ledger.try_reserve(small_trip, 6)
    await ledger.try_reserve(small_trip, 2)

    with pytest.raises(InsufficientSeats) as info:
        await ledger.try_reserve(small_trip, 3)

    assert info.value.remaining == 2
    assert "2" in info.value.message
    assert await ledger.available_seats(small_trip) == 2


@pytest.mark.asyncio
async def test_try_reserve_sold_out(ledger, sold_out_trip):
    with pytest.raises(InsufficientSeats) as info:
        await ledger.try_reserve(sold_out_trip, 1)
    assert info.value.remaining == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, -1, 7, 100, True, 1.5, "2"])
async def test_try_reserve_rejects_bad_count(ledger, small_trip, count):
    with pytest.raises(ValidationError):
        await ledger.try_reserve(small_trip, count)
    assert await ledger.available_seats(small_trip) == 10


@pytest.mark.asyncio
async def test_try_reserve_unknown_trip(ledger):
    with pytest.raises(TripNotFound):
        await ledger.try_reserve("nope", 1)


@pytest.mark.asyncio
async def test_release_gives_seats_back(ledger, small_trip):
    await ledger.try_reserve(small_trip, 4)
    await ledger.release(small_trip, 4)

    assert await ledger.available_seats(small_trip) == 10


@pytest.mark.asyncio
async def test_release_more_than_reserved_is_rejected(ledger, small_trip):
    await ledger.try_reserve(small_trip, 2)

    with pytest.raises(ValidationError):
        await ledger.release(small_trip, 3)
    assert await ledger.available_seats(small_trip) == 8


@pytest.mark.asyncio
async def test_concurrent_reservations_never_oversell(catalog, ledger):
    """100 concurrent 1-seat reservations against 10 seats -> exactly 10 succeed."""
    trip_id = await catalog.add(make_draft(capacity=10))

    results = await asyncio.gather(
        *(ledger.try_reserve(trip_id, 1) for _ in range(100)),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, InsufficientSeats)]
    assert len(succeeded) == 10
    assert len(rejected) == 90
    assert await ledger.available_seats(trip_id) == 0


@pytest.mark.asyncio
async def test_concurrent_mixed_sizes_stay_within_capacity(catalog, ledger):
    trip_id = await catalog.add(make_draft(capacity=17))
    counts = [1, 2, 3, 4, 5, 6] * 5

    results = await asyncio.gather(
        *(ledger.try_reserve(trip_id, n) for n in counts),
        return_exceptions=True,
    )

    reserved = sum(n for n, r in zip(counts, results) if not isinstance(r, Exception))
    entry = await ledger.backend.snapshot(trip_id)
    assert entry.seats_reserved == reserved
    assert 0 <= entry.seats_reserved <= 17


@pytest.mark.asyncio
async def test_reservation_commit_keeps_seats(ledger, small_trip):
    async with ledger.reservation(small_trip, 2) as hold:
        hold.commit()

    assert hold.committed
    assert await ledger.available_seats(small_trip) == 8


@pytest.mark.asyncio
async def test_reservation_released_on_error(ledger, small_trip):
    with pytest.raises(RuntimeError):
        async with ledger.reservation(small_trip, 2):
            assert await ledger.available_seats(small_trip) == 8
            raise RuntimeError("downstream step failed")

    assert await ledger.available_seats(small_trip) == 10


@pytest.mark.asyncio
async def test_reservation_released_when_not_committed(ledger, small_trip):
    async with ledger.reservation(small_trip, 2):
        pass

    assert await ledger.available_seats(small_trip) == 10


@pytest.mark.asyncio
async def test_reservation_released_on_cancellation(ledger, small_trip):
    holding = asyncio.Event()

    async def abandoned_request():
        async with ledger.reservation(small_trip, 3):
            holding.set()
            await asyncio.sleep(60)

    task = asyncio.create_task(abandoned_request())
    await holding.wait()
    assert await ledger.available_seats(small_trip) == 7

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await ledger.available_seats(small_trip) == 10


@pytest.mark.asyncio
async def test_failed_reservation_does_not_release(ledger, last_seat_trip):
    with pytest.raises(InsufficientSeats):
        async with ledger.reservation(last_seat_trip, 2):
            pass

    assert await ledger.available_seats(last_seat_trip) == 1
