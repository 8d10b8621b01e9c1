from __future__ import annotations


class ShiftEazeError(Exception):
    """Base exception for the block scheduling core."""


class BlockValidationError(ShiftEazeError):
    """A candidate block was rejected; nothing was persisted."""

    kind = "InvalidBlock"
    default_message = "The schedule block is incomplete"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class MissingDate(BlockValidationError):
    kind = "MissingDate"
    default_message = "Start and end dates are required"


class MissingTime(BlockValidationError):
    kind = "MissingTime"
    default_message = "Start and end times are required for full day and off day blocks"


class MissingEmployee(BlockValidationError):
    kind = "MissingEmployee"
    default_message = "Select a worker for this block"


class UnknownBlockType(BlockValidationError, ValueError):
    kind = "UnknownBlockType"
    default_message = "Choose a full day, off day or vacation block"


class EmployeeDirectoryUnavailable(ShiftEazeError):
    """The roster could not be read, e.g. for an unauthenticated caller."""

    kind = "EmployeeDirectoryUnavailable"
