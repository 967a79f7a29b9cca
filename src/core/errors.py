"""
Error types raised by the data quality engine and its collaborators.

Storage and task-tracker errors are caught at the client boundary and
re-raised as one of these, so callers only handle this hierarchy.
"""


class DataQualityError(Exception):
    """Base class for all data quality errors."""


class FetchError(DataQualityError):
    """One or more bulk reads failed. Carries every failed collection."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        detail = "; ".join(f"{name}: {msg}" for name, msg in failures.items())
        super().__init__(f"Failed to load data ({detail})")


class RemediationError(DataQualityError):
    """An inline fix or override upsert was rejected by the store."""

    def __init__(self, message: str, issue_key: str | None = None):
        self.issue_key = issue_key
        super().__init__(message)


class NotificationError(DataQualityError):
    """Creating an external task failed."""


class StoreError(DataQualityError):
    """The relational store rejected a read or write."""
