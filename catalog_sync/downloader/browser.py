from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict

from catalog_sync.config import Config
from catalog_sync.json_logger import JsonLogger, log_event

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-zygote",
    "--single-process",
]
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1280, "height": 720}


@dataclass
class BrowserSession:
    browser: Any
    context: Any
    page: Any


async def launch_browser(*, playwright: Any, config: Config, logger: JsonLogger) -> Any:
    launch_kwargs: Dict[str, Any] = {"headless": config.headless, "args": list(CHROMIUM_ARGS)}
    log_event(
        logger=logger,
        phase="init",
        message="Launching Playwright with bundled Chromium",
        headless=config.headless,
    )
    return await playwright.chromium.launch(**launch_kwargs)


async def _close_quietly(resource: Any, *, label: str, logger: JsonLogger) -> None:
    if resource is None:
        return
    try:
        await resource.close()
    except Exception as exc:
        logger.warn(phase="teardown", message=f"failed to close {label}", error=str(exc))


@asynccontextmanager
async def open_session(*, playwright: Any, config: Config, logger: JsonLogger) -> AsyncIterator[BrowserSession]:
    """Yield a fresh browser/context/page and close all three on every exit path."""

    browser = context = page = None
    try:
        browser = await launch_browser(playwright=playwright, config=config, logger=logger)
        context = await browser.new_context(
            user_agent=USER_AGENT,
            viewport=VIEWPORT,
            locale=config.browser_locale,
        )
        page = await context.new_page()
        yield BrowserSession(browser=browser, context=context, page=page)
    finally:
        await _close_quietly(page, label="page", logger=logger)
        await _close_quietly(context, label="context", logger=logger)
        await _close_quietly(browser, label="browser", logger=logger)
