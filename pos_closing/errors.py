"""
Error taxonomy shared by the reconciliation engine and the settlement calculator.
"""
from __future__ import annotations

from typing import Optional


class ConfigurationError(RuntimeError):
    """Required configuration (vendor token, database) is missing. Not retried."""


class ValidationError(ValueError):
    """Caller-supplied input is malformed.

    ``field`` and ``index`` locate the offending value so the HTTP boundary
    can report it precisely.
    """

    def __init__(
        self, message: str, field: Optional[str] = None, index: Optional[int] = None
    ):
        super().__init__(message)
        self.field = field
        self.index = index

    def to_dict(self) -> dict:
        detail: dict = {"message": str(self)}
        if self.field is not None:
            detail["field"] = self.field
        if self.index is not None:
            detail["index"] = self.index
        return detail


class UpstreamPaginationError(RuntimeError):
    """The vendor feed kept paging past the page cap; the batch is discarded."""


class ParseAnomaly(ValueError):
    """A single receipt, payment or discount entry could not be parsed.

    Raised inside the engine and recovered locally by degrading that entry.
    """
