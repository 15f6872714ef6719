"""Single run of the catalog agent: login, download, deliver, prune."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from playwright.async_api import async_playwright

from catalog_sync.config import Config
from catalog_sync.delivery import deliver, generate_history_id, prune_history
from catalog_sync.json_logger import JsonLogger, log_event, timed_event

from . import login as login_module
from .browser import open_session
from .download import ExportArtifact, download_with_reauth
from .retry import RetryPolicy, with_retry

LOGIN_POLICY = RetryPolicy(retries=2, base_delay_ms=3_000, task_name="Login")
DOWNLOAD_POLICY = RetryPolicy(retries=2, base_delay_ms=2_000, task_name="Download CSV")


async def acquire_export(
    page: Any,
    *,
    config: Config,
    logger: JsonLogger,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> ExportArtifact:
    async def _login() -> object:
        return await login_module.perform_login(page, config=config, logger=logger)

    async def _download() -> ExportArtifact:
        return await download_with_reauth(page, config=config, logger=logger, login=_login)

    await with_retry(_login, LOGIN_POLICY, logger=logger, sleep=sleep)
    return await with_retry(_download, DOWNLOAD_POLICY, logger=logger, sleep=sleep)


async def run_agent(
    config: Config,
    logger: JsonLogger,
    *,
    playwright_factory: Callable[[], Any] = async_playwright,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> ExportArtifact:
    log_event(logger=logger, phase="init", message="catalog sync started", target=config.target)

    async with playwright_factory() as playwright:
        async with open_session(playwright=playwright, config=config, logger=logger) as session:
            with timed_event(logger=logger, phase="download", message="catalog acquired"):
                artifact = await acquire_export(session.page, config=config, logger=logger, sleep=sleep)

    history_id = generate_history_id()
    await deliver(artifact.body, history_id, config=config, logger=logger)
    await prune_history(config=config, logger=logger)

    log_event(
        logger=logger,
        phase="done",
        message="catalog sync completed",
        bytes=artifact.size,
        history_id=history_id,
    )
    return artifact
