from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from shifteaze.blocks import ScheduleBlock


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a <= end_b and start_b <= end_a


def assign_row(start: date, end: date, existing: Iterable[ScheduleBlock]) -> int:
    """Return the lowest row on which ``[start, end]`` collides with no existing block.

    Only date spans are compared; start and end times never affect placement.
    Rows already handed out are never revisited, and there is no upper bound.
    """
    by_row: dict[int, list[ScheduleBlock]] = defaultdict(list)
    for block in existing:
        by_row[block.row].append(block)

    row = 0
    while any(ranges_overlap(block.start_date, block.end_date, start, end) for block in by_row.get(row, ())):
        row += 1
    return row


def row_count(blocks: Iterable[ScheduleBlock]) -> int:
    return max((block.row + 1 for block in blocks), default=0)
