"""Translate GitHub seat payloads into domain seats."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from seatsync.domain.model import Seat, TeamRef

from .schema import SeatPayload

UNKNOWN_LOGIN = "????"

SeatPayloadInput = SeatPayload | Mapping[str, object]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_seat(payload: SeatPayloadInput, *, organization: str) -> Seat:
    """Build a ``Seat`` owned by ``organization`` from a seat payload."""

    model = payload if isinstance(payload, SeatPayload) else SeatPayload.model_validate(payload)
    team = model.assigning_team
    activity = model.last_activity_at
    return Seat(
        organization=organization,
        login=model.assignee.login or UNKNOWN_LOGIN,
        created_at=_as_utc(model.created_at),
        last_activity_at=_as_utc(activity) if activity is not None else None,
        last_activity_editor=model.last_activity_editor,
        pending_cancellation_date=model.pending_cancellation_date,
        assigning_team=TeamRef(slug=team.slug, name=team.name) if team is not None else None,
    )


def seat_to_payload(seat: Seat) -> dict[str, object]:
    """JSON-ready view of a seat for action outputs and exports."""

    return {
        "organization": seat.organization,
        "login": seat.login,
        "created_at": seat.created_at.isoformat(),
        "last_activity_at": seat.last_activity_at.isoformat() if seat.last_activity_at else None,
        "last_activity_editor": seat.last_activity_editor,
        "pending_cancellation_date": (
            seat.pending_cancellation_date.isoformat() if seat.pending_cancellation_date else None
        ),
        "assigning_team": seat.assigning_team.slug if seat.assigning_team else None,
    }
