"""Seat activity classification."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from .model import SeatActivity

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .model import Seat

MS_PER_DAY = 86_400_000
_ONE_MS = timedelta(milliseconds=1)


def elapsed_days(since: datetime, now: datetime) -> int:
    """Whole days between ``since`` and ``now``, rounding any partial day up."""

    elapsed_ms = (now - since) // _ONE_MS
    return -(-elapsed_ms // MS_PER_DAY)


def last_seen(seat: Seat) -> datetime:
    return seat.last_activity_at if seat.last_activity_at is not None else seat.created_at


def classify_seat(seat: Seat, threshold_days: int, now: datetime) -> SeatActivity:
    if elapsed_days(last_seen(seat), now) > threshold_days:
        return SeatActivity.INACTIVE
    return SeatActivity.ACTIVE


def sort_inactive(seats: Iterable[Seat]) -> list[Seat]:
    """Order seats oldest activity first; seats that never reported activity lead."""

    # sorted() is stable, so equal keys keep their fetch order.
    return sorted(
        seats,
        key=lambda seat: (
            seat.last_activity_at is not None,
            seat.last_activity_at.timestamp() if seat.last_activity_at is not None else 0.0,
        ),
    )


def select_inactive(seats: Iterable[Seat], threshold_days: int, now: datetime) -> list[Seat]:
    return sort_inactive(
        seat for seat in seats if classify_seat(seat, threshold_days, now) is SeatActivity.INACTIVE
    )


__all__ = [
    "MS_PER_DAY",
    "classify_seat",
    "elapsed_days",
    "last_seen",
    "select_inactive",
    "sort_inactive",
]
