# spreadsheet_brain/errors.py
"""
Exceptions that may cross the engine boundary.

Everything user-facing is reported as a QueryResult instead; only a failed
snapshot fetch is allowed to propagate, since no partial graph is safe to serve.
"""


class SpreadsheetBrainError(Exception):
    """Base class for spreadsheet-brain errors."""


class SnapshotFetchError(SpreadsheetBrainError):
    """The snapshot source could not produce a fresh read of the document."""

    def __init__(self, document_id: str, reason: str):
        super().__init__(f"Failed to read sheets from {document_id!r}: {reason}")
        self.document_id = document_id
        self.reason = reason
