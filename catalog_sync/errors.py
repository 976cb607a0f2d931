"""Exception taxonomy and recoverable drop reasons."""

from enum import Enum

__all__ = [
    "CatalogSyncError",
    "UpstreamFailure",
    "ConfigurationError",
    "DropReason",
]


class CatalogSyncError(Exception):
    """Base class for catalog sync errors."""
    pass


class UpstreamFailure(CatalogSyncError):
    """Raised when an external collaborator (auth, download, upload) fails.

    Fatal to the run: no partial catalog is produced.
    """
    pass


class ConfigurationError(CatalogSyncError):
    """Raised when a setting required by the requested operation is missing."""
    pass


class DropReason(str, Enum):
    """Why a piece of input was dropped or repaired instead of failing the run."""

    MALFORMED_MEMBERSHIP = "malformed_membership"
    DANGLING_CATEGORY = "dangling_category"
    DANGLING_PARENT = "dangling_parent"
    CYCLE_TRUNCATED = "cycle_truncated"
    MISSING_FIELD = "missing_field"
    INVALID_CATEGORY_ROW = "invalid_category_row"
    DUPLICATE_CATEGORY = "duplicate_category"
