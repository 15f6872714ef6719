from __future__ import annotations

from pathlib import Path

from catalog_sync.config import Config
from catalog_sync.errors import DeliveryError
from catalog_sync.json_logger import JsonLogger, log_event

from .history import is_history_name, names_to_prune


def history_dir(config: Config) -> Path:
    return Path(config.output_dir) / "history"


def save_to_filesystem(
    buffer: bytes,
    filename: str,
    *,
    config: Config,
    logger: JsonLogger,
    is_history: bool = False,
) -> Path:
    output_dir = Path(config.output_dir)
    target_dir = history_dir(config) if is_history else output_dir
    file_path = target_dir / filename
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(buffer)
    except OSError as exc:
        raise DeliveryError(f"File save failed: {exc}") from exc
    log_event(
        logger=logger,
        phase="delivery",
        message="file saved",
        target="fs",
        path=str(file_path),
        bytes=len(buffer),
    )
    return file_path


def prune_local_history(*, config: Config, logger: JsonLogger) -> list[Path]:
    directory = history_dir(config)
    if not directory.exists():
        return []

    names = [path.name for path in directory.iterdir() if path.is_file() and is_history_name(config, path.name)]
    removed: list[Path] = []
    for name in names_to_prune(names, config.keep_history):
        path = directory / name
        path.unlink(missing_ok=True)
        logger.debug(phase="prune", message="deleted old history file", path=str(path))
        removed.append(path)

    if removed:
        log_event(logger=logger, phase="prune", message=f"pruned {len(removed)} old history files", target="fs")
    return removed
