"""Storage error types shared by every index backend."""

from __future__ import annotations


class IndexStoreError(Exception):
    """Raised when the index store cannot complete a read or write.

    Callers treat this as transient: the ingestor abandons the batch without
    advancing its stream position, and the query surface answers 503.
    """
