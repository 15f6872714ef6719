from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from catalog_sync.config import Config
from catalog_sync.json_logger import JsonLogger


def _ensure_diagnostics_dir(config: Config) -> Path:
    path = Path(config.diagnostics_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def capture_diagnostics(
    page: Any,
    *,
    kind: str,
    config: Config,
    logger: JsonLogger,
) -> Dict[str, str]:
    """Save a full-page screenshot and HTML dump of ``page``. Never raises.

    Only runs when verbose diagnostics are enabled (``LOG_LEVEL=debug``).
    """

    if not config.screenshot_on_error:
        return {}

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    base_name = f"{kind}-error-{timestamp}"
    extras: Dict[str, str] = {}

    try:
        artifacts_dir = _ensure_diagnostics_dir(config)
    except Exception as exc:
        logger.warn(phase="diagnostics", message="unable to create diagnostics dir", error=str(exc))
        return {"dir_error": str(exc)}

    extras["artifacts_dir"] = str(artifacts_dir)
    screenshot_path = artifacts_dir / f"{base_name}.png"
    html_path = artifacts_dir / f"{base_name}.html"

    try:
        await page.screenshot(path=str(screenshot_path), full_page=True)
        extras["screenshot"] = str(screenshot_path)
    except Exception as exc:
        extras["screenshot_error"] = str(exc)

    try:
        html_content = await page.content()
        html_path.write_text(html_content, encoding="utf-8")
        extras["html_dump"] = str(html_path)
    except Exception as exc:
        extras["html_error"] = str(exc)

    logger.debug(phase="diagnostics", message=f"{kind} diagnostics captured", **extras)
    return extras
