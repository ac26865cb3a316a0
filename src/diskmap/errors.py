"""Exception types raised across the diskmap package."""

from __future__ import annotations


class DiskMapError(Exception):
    """Base class for diskmap errors."""


class ScanCancelled(DiskMapError):
    """Raised when a scan is cancelled through its cancellation token."""


class ScanInProgressError(DiskMapError):
    """Raised when a scan is requested while another one is still running."""


class TrashFailed(DiskMapError):
    """Raised when moving an item to the trash fails. The tree is unchanged."""


class RestoreFailed(DiskMapError):
    """Raised when restoring an item from the trash fails. The tree is unchanged."""
