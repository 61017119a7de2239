from typing import Any, Dict, Optional


class SyncError(Exception):
    """Base class for replication failures"""


class DatabaseConnectionError(SyncError):
    """Source or target database cannot be reached"""


class SchemaError(SyncError):
    """A listed table cannot be introspected"""


class BlobTimeoutError(SyncError):
    """A deferred BLOB value did not resolve in time"""


class BatchLoadError(SyncError):
    """Loading rows into a target table failed"""


class AggregateRunError(SyncError):
    """Raised once at the end of a run in which any table or pair failed"""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
