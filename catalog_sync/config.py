"""
CONFIG.PY: SINGLE SOURCE OF TRUTH (SSOT)

This module is the ONLY place allowed to read environment variables.

Required portal settings MUST exist and have no defaults. Optional settings carry
documented defaults. Target-specific settings (WordPress, S3) are required
only when that target is selected. If anything is missing or invalid, the
run MUST fail before a browser is launched.

Config is loaded ONCE at startup by the CLI and passed explicitly to every
component:

    from catalog_sync.config import load_config

    config = load_config()

Do not access os.getenv or os.environ directly from any other module.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Load variables from .env if it exists; OS env overrides these automatically
load_dotenv(PROJECT_ROOT / ".env")


logger = logging.getLogger(__name__)

REQUIRED_ENV_KEYS = [
    "PORTAL_BASE_URL",
    "PORTAL_LOGIN_URL",
    "PORTAL_EXPORT_URL",
    "PORTAL_USERNAME",
    "PORTAL_PASSWORD",
]

WP_REQUIRED_KEYS = ["WP_BASE_URL", "WP_USER", "WP_APP_PASS"]
S3_REQUIRED_KEYS = ["S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY", "S3_SECRET_KEY"]

TARGETS = ("fs", "s3", "wp")
LOG_LEVELS = ("debug", "info", "warn", "error")

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded."""


def _require_env(key: str) -> str:
    value = os.getenv(key)
    if value is None:
        message = f"Missing required environment variable: {key}"
        logger.error(message)
        raise ConfigError(message)
    stripped = value.strip()
    if not stripped:
        message = f"Environment variable {key} cannot be blank"
        logger.error(message)
        raise ConfigError(message)
    return stripped


def _optional_env(key: str, default: str = "") -> str:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    message = f"Config key {key} must be a boolean string; got {value!r}"
    logger.error(message)
    raise ConfigError(message)


def _parse_int(value: str, *, key: str) -> int:
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        message = f"Config key {key} must be an integer; got {value!r}"
        logger.error(message)
        raise ConfigError(message)


def _clean_url(value: str, *, key: str, strip_slash: bool = True) -> str:
    stripped = value.strip()
    if strip_slash:
        stripped = stripped.rstrip("/")
    if not stripped:
        message = f"Config key {key} cannot be blank"
        logger.error(message)
        raise ConfigError(message)
    if not stripped.startswith(("http://", "https://")):
        message = f"Config key {key} must be an http(s) URL; got {value!r}"
        logger.error(message)
        raise ConfigError(message)
    return stripped


def _clean_choice(value: str, *, key: str, choices: tuple[str, ...]) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        message = f"Config key {key} must be one of {', '.join(choices)}; got {value!r}"
        logger.error(message)
        raise ConfigError(message)
    return normalized


def _require_target_keys(target: str) -> None:
    keys = {"wp": WP_REQUIRED_KEYS, "s3": S3_REQUIRED_KEYS}.get(target, [])
    missing = [key for key in keys if not _optional_env(key)]
    if missing:
        message = f"Target {target!r} requires: {', '.join(missing)}"
        logger.error(message)
        raise ConfigError(message)


@dataclass(slots=True, frozen=True)
class Config:
    base_url: str
    login_url: str
    export_url: str
    username: str
    password: str

    target: str = "fs"
    keep_history: int = 10
    log_level: str = "info"
    json_log_file: str = ""
    output_dir: Path = PROJECT_ROOT / "output"
    diagnostics_dir: Path = PROJECT_ROOT / "screenshots"
    catalog_filename: str = "catalog.csv"
    history_prefix: str = "catalog-"
    headless: bool = True
    browser_locale: str = "it-IT"

    visibility_timeout_ms: int = 1_000
    navigation_timeout_ms: int = 30_000
    export_timeout_ms: int = 60_000
    consent_settle_ms: int = 1_000

    wp_base_url: str = ""
    wp_user: str = ""
    wp_app_pass: str = ""
    wp_upload_endpoint: str = "/wp-json/ingro/v1/upload"

    s3_endpoint: str = ""
    s3_region: str = "us-east-1"
    s3_bucket: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_key: str = "catalog/catalog.csv"
    s3_history_prefix: str = "catalog/history/"

    @property
    def screenshot_on_error(self) -> bool:
        return self.log_level == "debug"

    @classmethod
    def load_from_env(cls, *, target: str | None = None) -> Config:
        values = {key: _require_env(key) for key in REQUIRED_ENV_KEYS}

        resolved_target = _clean_choice(
            target or _optional_env("TARGET", "fs"), key="TARGET", choices=TARGETS
        )
        _require_target_keys(resolved_target)

        keep_history = _parse_int(_optional_env("KEEP_HISTORY", "10"), key="KEEP_HISTORY")
        log_level = _clean_choice(_optional_env("LOG_LEVEL", "info"), key="LOG_LEVEL", choices=LOG_LEVELS)
        headless = _parse_bool(_optional_env("HEADLESS", "true"), key="HEADLESS")

        wp_base_url = _optional_env("WP_BASE_URL")
        s3_endpoint = _optional_env("S3_ENDPOINT")

        return cls(
            base_url=_clean_url(values["PORTAL_BASE_URL"], key="PORTAL_BASE_URL"),
            login_url=_clean_url(values["PORTAL_LOGIN_URL"], key="PORTAL_LOGIN_URL", strip_slash=False),
            export_url=_clean_url(values["PORTAL_EXPORT_URL"], key="PORTAL_EXPORT_URL", strip_slash=False),
            username=values["PORTAL_USERNAME"],
            password=values["PORTAL_PASSWORD"],
            target=resolved_target,
            keep_history=keep_history,
            log_level=log_level,
            json_log_file=_optional_env("JSON_LOG_FILE"),
            output_dir=Path(_optional_env("OUTPUT_DIR", str(PROJECT_ROOT / "output"))),
            diagnostics_dir=Path(_optional_env("DIAGNOSTICS_DIR", str(PROJECT_ROOT / "screenshots"))),
            catalog_filename=_optional_env("CATALOG_FILENAME", "catalog.csv"),
            history_prefix=_optional_env("HISTORY_PREFIX", "catalog-"),
            headless=headless,
            browser_locale=_optional_env("BROWSER_LOCALE", "it-IT"),
            wp_base_url=_clean_url(wp_base_url, key="WP_BASE_URL") if wp_base_url else "",
            wp_user=_optional_env("WP_USER"),
            wp_app_pass=_optional_env("WP_APP_PASS"),
            wp_upload_endpoint=_optional_env("WP_UPLOAD_ENDPOINT", "/wp-json/ingro/v1/upload"),
            s3_endpoint=_clean_url(s3_endpoint, key="S3_ENDPOINT") if s3_endpoint else "",
            s3_region=_optional_env("S3_REGION", "us-east-1"),
            s3_bucket=_optional_env("S3_BUCKET"),
            s3_access_key=_optional_env("S3_ACCESS_KEY"),
            s3_secret_key=_optional_env("S3_SECRET_KEY"),
            s3_key=_optional_env("S3_KEY", "catalog/catalog.csv"),
            s3_history_prefix=_optional_env("S3_HISTORY_PREFIX", "catalog/history/"),
        )


def load_config(*, target: str | None = None) -> Config:
    return Config.load_from_env(target=target)
