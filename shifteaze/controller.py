from __future__ import annotations

import logging
import secrets
import time
from dataclasses import replace
from datetime import date
from typing import Literal

from shifteaze.blocks import (
    BLOCK_TYPES,
    TIMED_BLOCK_TYPES,
    BlockCandidate,
    EmployeeSnapshot,
    MonthBounds,
    ScheduleBlock,
    Scope,
)
from shifteaze.directory import Employee, EmployeeDirectory, job_titles, selectable_employees
from shifteaze.exceptions import EmployeeDirectoryUnavailable, MissingEmployee, UnknownBlockType
from shifteaze.rows import assign_row
from shifteaze.store import ScopedBlockStore
from shifteaze.validation import parse_date, validate_candidate

logger = logging.getLogger(__name__)

ControllerState = Literal["idle", "composing"]
IDLE: ControllerState = "idle"
COMPOSING: ControllerState = "composing"

# Photo reference stored for workers without one.
MISSING_PHOTO = "None"


def ensure_block_type(block_type: str) -> None:
    if block_type not in BLOCK_TYPES:
        raise UnknownBlockType(f"Unknown block type: {block_type}")


def new_block_id(taken: set[str]) -> str:
    while True:
        block_id = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"
        if block_id not in taken:
            return block_id


class BlockGridController:
    """Creates, lays out and persists schedule blocks for one manager's calendar.

    The controller is driven by explicit events: ``refresh_roster`` when the
    signed-in manager changes, ``select_job_title`` and ``change_month`` when
    the visible scope changes, and ``select_block_type`` / ``update_draft`` /
    ``submit`` / ``reset`` for the block form. Every successful mutation is
    written through to the store before the call returns, so ``blocks`` always
    equals what the store holds for the active scope.
    """

    def __init__(self, directory: EmployeeDirectory, store: ScopedBlockStore, month: date | None = None):
        self.directory = directory
        self.store = store
        self.month = (month or date.today()).replace(day=1)
        self.job_title: str | None = None
        self.state: ControllerState = IDLE
        self.draft: BlockCandidate | None = None
        self.error: str | None = None
        self.roster: list[Employee] = []
        self._blocks: list[ScheduleBlock] = []

    @property
    def bounds(self) -> MonthBounds:
        return MonthBounds.for_month(self.month)

    @property
    def scope(self) -> Scope | None:
        if not self.job_title:
            return None
        return Scope.of(self.job_title, self.month)

    @property
    def blocks(self) -> list[ScheduleBlock]:
        return list(self._blocks)

    @property
    def job_titles(self) -> list[str]:
        return job_titles(self.roster)

    @property
    def selectable_employees(self) -> list[Employee]:
        return selectable_employees(self.roster, self.job_title)

    # events

    def refresh_roster(self) -> list[Employee]:
        try:
            self.roster = self.directory.list_employees()
            self.error = None
        except EmployeeDirectoryUnavailable as exc:
            logger.warning("Employee directory unavailable: %s", exc)
            self.roster = []
            self.error = str(exc)
        return self.roster

    def select_job_title(self, job_title: str | None) -> list[ScheduleBlock]:
        self.job_title = job_title or None
        return self._reload()

    def change_month(self, month: date) -> list[ScheduleBlock]:
        self.month = month.replace(day=1)
        if self.draft is not None:
            self.draft = replace(self.draft, start_date=self.bounds.first.isoformat(), end_date=self.bounds.last.isoformat())
        return self._reload()

    def _reload(self) -> list[ScheduleBlock]:
        scope = self.scope
        self._blocks = self.store.load(scope) if scope is not None else []
        return self.blocks

    # form

    def select_block_type(self, block_type: str) -> BlockCandidate:
        ensure_block_type(block_type)
        bounds = self.bounds
        if self.draft is None:
            self.draft = BlockCandidate(
                block_type=block_type,
                start_date=bounds.first.isoformat(),
                end_date=bounds.last.isoformat(),
            )
        else:
            self.draft = replace(self.draft, block_type=block_type)
        self.state = COMPOSING
        return self.draft

    def update_draft(self, **fields) -> BlockCandidate:
        if self.state != COMPOSING or self.draft is None:
            raise RuntimeError("Select a block type before editing the block form")
        if "block_type" in fields:
            ensure_block_type(fields["block_type"])
        for name in ("start_date", "end_date"):
            parsed = parse_date(fields.get(name))
            if parsed is not None:
                fields[name] = self.bounds.clamp(parsed).isoformat()
        self.draft = replace(self.draft, **fields)
        return self.draft

    def reset(self) -> None:
        self.draft = None
        self.state = IDLE

    def submit(self) -> ScheduleBlock:
        if self.state != COMPOSING or self.draft is None:
            raise RuntimeError("There is no block form to submit")
        return self.create(self.draft)

    # commands

    def create(self, candidate: BlockCandidate) -> ScheduleBlock:
        ensure_block_type(candidate.block_type)
        validate_candidate(candidate, self.bounds).raise_for_error()
        scope = self.scope
        employee = next((e for e in self.selectable_employees if e.id == candidate.employee_id), None)
        if scope is None or employee is None:
            raise MissingEmployee()

        bounds = self.bounds
        start = bounds.clamp(parse_date(candidate.start_date))
        end = bounds.clamp(parse_date(candidate.end_date))
        timed = candidate.block_type in TIMED_BLOCK_TYPES
        block = ScheduleBlock(
            id=new_block_id({b.id for b in self._blocks}),
            type=candidate.block_type,
            start_date=start,
            end_date=end,
            start_time=candidate.start_time if timed else None,
            end_time=candidate.end_time if timed else None,
            employee=EmployeeSnapshot(
                first_name=employee.first_name,
                last_name=employee.last_name,
                photo_url=employee.photo_url or MISSING_PHOTO,
            ),
            row=assign_row(start, end, self._blocks),
        )

        updated = [*self._blocks, block]
        self.store.save(scope, updated)
        self._blocks = updated
        self.reset()
        logger.info(
            "Added %s for %s %s to %s %s on row %d",
            block.type,
            employee.first_name,
            employee.last_name,
            scope.job_title,
            scope.month,
            block.row,
        )
        return block

    def clear_all(self, scope: Scope | None = None) -> int:
        target = scope or self.scope
        if target is None:
            return 0
        removed = len(self.store.load(target))
        self.store.clear(target)
        if target == self.scope:
            self._blocks = []
        logger.info("Cleared %d blocks from %s %s", removed, target.job_title, target.month)
        return removed
