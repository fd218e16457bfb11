from __future__ import annotations


class RecordStoreError(RuntimeError):
    """Raised when a record cannot be written to or read from the record store."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"record store failure for {key}: {reason}")
        self.key = key
        self.reason = reason


class FeedbackParseError(ValueError):
    """Raised when the analysis text is not a valid JSON document."""
