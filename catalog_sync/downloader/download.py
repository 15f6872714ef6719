from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from catalog_sync.config import Config
from catalog_sync.errors import DownloadError, SessionExpiredError
from catalog_sync.json_logger import JsonLogger, log_event

from .content_check import check_csv_payload
from .diagnostics import capture_diagnostics

MAX_REDIRECTS = 3


@dataclass(frozen=True)
class ExportArtifact:
    body: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.body)


async def fetch_export(page: Any, *, config: Config, logger: JsonLogger) -> ExportArtifact:
    """Fetch the export with the page's cookies and check it is really CSV."""

    log_event(logger=logger, phase="download", message="downloading catalog export", url=config.export_url)
    try:
        # page.request shares the browser context's cookie jar.
        response = await page.request.get(
            config.export_url,
            timeout=config.export_timeout_ms,
            max_redirects=MAX_REDIRECTS,
        )
        status = response.status
        content_type = response.headers.get("content-type", "") or ""
        body = await response.body()

        logger.debug(
            phase="download",
            message="export response received",
            http_status=status,
            content_type=content_type,
            bytes=len(body),
        )

        if status != 200:
            raise DownloadError(f"HTTP {status} received")

        is_csv, reason = check_csv_payload(body, content_type)
        if not is_csv:
            logger.warn(phase="download", message="export is not CSV", reason=reason)
            raise SessionExpiredError("Received HTML instead of CSV - session may have expired")
    except Exception as exc:
        logger.error(phase="download", message="catalog download failed", error=str(exc))
        await capture_diagnostics(page, kind="download", config=config, logger=logger)
        raise

    artifact = ExportArtifact(body=body, content_type=content_type)
    log_event(logger=logger, phase="download", message="catalog downloaded", bytes=artifact.size)
    return artifact


async def download_with_reauth(
    page: Any,
    *,
    config: Config,
    logger: JsonLogger,
    login: Callable[[], Awaitable[object]],
) -> ExportArtifact:
    """One download attempt; an expired session gets exactly one re-login and refetch."""

    try:
        return await fetch_export(page, config=config, logger=logger)
    except SessionExpiredError:
        logger.warn(phase="download", message="session expired, attempting re-login")
        await login()
        return await fetch_export(page, config=config, logger=logger)
