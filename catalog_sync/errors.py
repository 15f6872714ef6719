from __future__ import annotations


class CatalogSyncError(RuntimeError):
    """Base class for failures raised by the catalog agent."""


class LoginError(CatalogSyncError):
    """Raised when a login attempt cannot be completed or verified."""


class DownloadError(CatalogSyncError):
    """Raised when the export endpoint returns an unusable response."""


class SessionExpiredError(DownloadError):
    """Raised when the export endpoint serves an HTML page instead of CSV."""


class DeliveryError(CatalogSyncError):
    """Raised when a storage backend rejects the catalog."""


# Exit code mapping (import and use in runner)
class ExitCodes:
    OK = 0                       # catalog delivered
    AUTH_FAILED = 20             # could not authenticate after all retries
    BAD_CONFIG = 30              # missing/invalid env
    DOWNLOAD_FAILED = 40         # export never yielded a CSV
    DELIVERY_FAILED = 45         # storage backend rejected the catalog
    UNCAUGHT = 50                # unexpected exception


def exit_code_for(exc: BaseException) -> int:
    from catalog_sync.config import ConfigError

    if isinstance(exc, ConfigError):
        return ExitCodes.BAD_CONFIG
    if isinstance(exc, LoginError):
        return ExitCodes.AUTH_FAILED
    if isinstance(exc, DownloadError):
        return ExitCodes.DOWNLOAD_FAILED
    if isinstance(exc, DeliveryError):
        return ExitCodes.DELIVERY_FAILED
    return ExitCodes.UNCAUGHT
