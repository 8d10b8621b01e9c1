from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from shifteaze.blocks import TIMED_BLOCK_TYPES, BlockCandidate, MonthBounds
from shifteaze.exceptions import BlockValidationError, MissingDate, MissingEmployee, MissingTime


@dataclass(frozen=True)
class ValidationResult:
    error: BlockValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def parse_date(value: str | None) -> date | None:
    if _blank(value):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def validate_candidate(candidate: BlockCandidate, bounds: MonthBounds | None = None) -> ValidationResult:
    """Check a candidate block against the admission rules, first failure wins.

    Dates falling outside ``bounds`` are not an error here: callers clamp
    them into the displayed month before the block is built.
    """
    if parse_date(candidate.start_date) is None or parse_date(candidate.end_date) is None:
        return ValidationResult(MissingDate())
    if candidate.block_type in TIMED_BLOCK_TYPES and (_blank(candidate.start_time) or _blank(candidate.end_time)):
        return ValidationResult(MissingTime())
    if _blank(candidate.employee_id):
        return ValidationResult(MissingEmployee())
    return ValidationResult()
