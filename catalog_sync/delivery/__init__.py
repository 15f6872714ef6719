"""Hand a validated catalog to the configured storage backend.

Each target receives the canonical file (always overwritten) and one
timestamped history copy. The two writes are independent: a failed history
write does not undo the canonical one. Retention keeps the newest
``KEEP_HISTORY`` history copies.
"""
from __future__ import annotations

from catalog_sync.config import Config
from catalog_sync.json_logger import JsonLogger, log_event

from .filesystem import prune_local_history, save_to_filesystem
from .history import generate_history_id, history_filename
from .s3 import prune_s3_history, upload_to_s3
from .wordpress import upload_to_wordpress

__all__ = ["deliver", "prune_history", "generate_history_id", "history_filename"]


async def deliver(buffer: bytes, history_id: str, *, config: Config, logger: JsonLogger) -> None:
    target = config.target
    catalog_name = config.catalog_filename
    history_name = history_filename(config, history_id)

    log_event(logger=logger, phase="delivery", message=f"Delivering to target: {target}", history_file=history_name)

    try:
        if target == "wp":
            await upload_to_wordpress(buffer, catalog_name, config=config, logger=logger)
            await upload_to_wordpress(buffer, history_name, config=config, logger=logger)
        elif target == "s3":
            await upload_to_s3(buffer, catalog_name, config=config, logger=logger)
            await upload_to_s3(buffer, history_name, config=config, logger=logger, is_history=True)
        else:
            save_to_filesystem(buffer, catalog_name, config=config, logger=logger)
            save_to_filesystem(buffer, history_name, config=config, logger=logger, is_history=True)
    except Exception as exc:
        logger.error(phase="delivery", message="Delivery failed", target=target, error=str(exc))
        raise

    log_event(logger=logger, phase="delivery", message="Delivery completed successfully", target=target)


async def prune_history(*, config: Config, logger: JsonLogger) -> None:
    """Best-effort removal of history copies beyond ``config.keep_history``."""

    if config.keep_history <= 0:
        return

    logger.debug(phase="prune", message=f"pruning history, keeping last {config.keep_history} files")
    try:
        if config.target == "s3":
            await prune_s3_history(config=config, logger=logger)
        elif config.target == "fs":
            prune_local_history(config=config, logger=logger)
        else:
            logger.debug(phase="prune", message="history pruning not supported for WordPress target")
    except Exception as exc:
        logger.warn(phase="prune", message="History pruning failed", target=config.target, error=str(exc))
