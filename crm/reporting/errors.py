"""
Reporting Errors

Only a failed fetch is an error. Malformed rows are skipped or counted as
zero, and an empty customer catalog yields 0 for the ratios.
"""


class ReportingError(Exception):
    """Base class for reporting failures"""


class DataSourceUnavailable(ReportingError):
    """A read against the backing store failed (network, auth, timeout)."""

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(f"Could not fetch {collection}: {reason}")
