"""
Transfer state of a package archive relative to the local installation.
"""

from __future__ import annotations

from enum import Enum


class TransferState(Enum):
    """Classification of a file against a previously installed copy.

    The enum values are the labels shown to users; internally code should
    compare against members, never strings.
    """

    NEW = "New"
    UNCHANGED = "Unchanged"
    OLDER = "Older"
    NOT_FOUND = "Not Found"
    ERROR = "Error"

    @property
    def suppresses_download(self) -> bool:
        """True if a record in this state should not be fetched again."""
        return self in (TransferState.UNCHANGED, TransferState.OLDER)

    def __str__(self) -> str:
        return self.value
