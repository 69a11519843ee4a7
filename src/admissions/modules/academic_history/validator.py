"""
Academic Interval Validator

Pure checks for academic history periods. No I/O and no hidden state: the
caller supplies every existing record of the owner.

Periods are closed intervals [start_date, end_date]. A missing end date means
the period is ongoing and extends indefinitely. Two periods overlap when
s1 <= e2 and e1 >= s2, so a period ending on the day another one starts is
an overlap.
"""

from collections.abc import Iterable
from datetime import date
from typing import Protocol
from uuid import UUID

from admissions.core.exceptions import OverlapError, ValidationFailedError


class InvalidRangeError(ValidationFailedError):
    """Raised when an end date is earlier than its start date."""

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}.",
            error_code="INVALID_DATE_RANGE",
        )


class Period(Protocol):
    id: UUID
    start_date: date
    end_date: date | None


def _effective_end(end_date: date | None) -> date:
    return date.max if end_date is None else end_date


def periods_overlap(
    start_a: date,
    end_a: date | None,
    start_b: date,
    end_b: date | None,
) -> bool:
    """Inclusive overlap test with open ends treated as unbounded."""
    return start_a <= _effective_end(end_b) and _effective_end(end_a) >= start_b


def validate_interval(
    start_date: date,
    end_date: date | None,
    existing_records: Iterable[Period],
    exclude_id: UUID | None = None,
) -> None:
    """
    Validate a candidate period against an owner's existing records.

    Args:
        start_date: Candidate start
        end_date: Candidate end, None if ongoing
        existing_records: Every record of the same owner
        exclude_id: Record being updated, skipped in the comparison

    Raises:
        InvalidRangeError: If end_date is before start_date
        OverlapError: If the candidate overlaps another record; carries its id
    """
    if end_date is not None and end_date < start_date:
        raise InvalidRangeError(start_date, end_date)

    for record in existing_records:
        if exclude_id is not None and record.id == exclude_id:
            continue
        if periods_overlap(start_date, end_date, record.start_date, record.end_date):
            raise OverlapError(record.id)
