from __future__ import annotations

from datetime import date

from shifteaze.blocks import FULL_DAY, OFF_DAY, VACATION, BlockCandidate, MonthBounds
from shifteaze.exceptions import MissingDate, MissingEmployee, MissingTime
from shifteaze.validation import parse_date, validate_candidate

MARCH = MonthBounds.for_month(date(2025, 3, 1))


def candidate(**overrides) -> BlockCandidate:
    fields = {
        "block_type": FULL_DAY,
        "start_date": "2025-03-05",
        "end_date": "2025-03-05",
        "start_time": "09:00",
        "end_time": "17:00",
        "employee_id": "jane",
    }
    fields.update(overrides)
    return BlockCandidate(**fields)


def test_complete_full_day_candidate_is_valid():
    result = validate_candidate(candidate(), MARCH)
    assert result.ok
    assert result.error is None


def test_missing_or_unparseable_dates_fail_first():
    for overrides in ({"start_date": ""}, {"end_date": None}, {"start_date": "05/03/2025"}, {"end_date": "  "}):
        result = validate_candidate(candidate(start_time="", employee_id=None, **overrides), MARCH)
        assert isinstance(result.error, MissingDate), overrides


def test_timed_blocks_require_both_times():
    for block_type in (FULL_DAY, OFF_DAY):
        assert isinstance(validate_candidate(candidate(block_type=block_type, start_time=""), MARCH).error, MissingTime)
        assert isinstance(validate_candidate(candidate(block_type=block_type, end_time=None), MARCH).error, MissingTime)


def test_vacation_skips_time_rule():
    result = validate_candidate(candidate(block_type=VACATION, start_time=None, end_time=None), MARCH)
    assert result.ok


def test_missing_employee_fails_for_every_type():
    for block_type in (FULL_DAY, OFF_DAY, VACATION):
        result = validate_candidate(candidate(block_type=block_type, employee_id=""), MARCH)
        assert isinstance(result.error, MissingEmployee)
        assert result.error.kind == "MissingEmployee"


def test_out_of_month_dates_are_not_a_validation_error():
    result = validate_candidate(candidate(start_date="2025-02-27", end_date="2025-04-02"), MARCH)
    assert result.ok


def test_month_bounds_clamp_into_displayed_month():
    assert MARCH.first == date(2025, 3, 1)
    assert MARCH.last == date(2025, 3, 31)
    assert MARCH.clamp(date(2025, 2, 14)) == date(2025, 3, 1)
    assert MARCH.clamp(date(2025, 4, 1)) == date(2025, 3, 31)
    assert MARCH.clamp(date(2025, 3, 17)) == date(2025, 3, 17)
    assert MonthBounds.for_month(date(2024, 2, 10)).last == date(2024, 2, 29)


def test_parse_date_rejects_blank_and_garbage():
    assert parse_date("2025-03-05") == date(2025, 3, 5)
    assert parse_date(" 2025-03-05 ") == date(2025, 3, 5)
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("2025-02-30") is None
