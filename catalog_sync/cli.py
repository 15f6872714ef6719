from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

from catalog_sync.config import TARGETS, ConfigError, load_config
from catalog_sync.errors import ExitCodes, exit_code_for
from catalog_sync.json_logger import get_logger, log_event, new_run_id


async def _run_async(args: argparse.Namespace) -> int:
    from catalog_sync.downloader.pipeline import run_agent

    run_id = args.run_id or new_run_id()
    try:
        config = load_config(target=args.target)
    except ConfigError as exc:
        logger = get_logger(run_id=run_id)
        log_event(logger=logger, phase="prereq", status="error", message=str(exc))
        logger.close()
        return ExitCodes.BAD_CONFIG

    logger = get_logger(
        run_id=run_id,
        log_file_path=config.json_log_file or None,
        level=config.log_level,
    )
    try:
        await run_agent(config, logger)
    except Exception as exc:
        code = exit_code_for(exc)
        log_event(
            logger=logger,
            phase="orchestrator",
            status="error",
            message="catalog sync failed",
            exit_code=code,
            extras={"error": str(exc), "exc_type": type(exc).__name__},
        )
        return code
    finally:
        logger.close()
    return ExitCodes.OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="catalog-sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Log in, download the catalog export and deliver it")
    run_parser.add_argument("--target", choices=TARGETS, default=None, help="Override TARGET from the environment")
    run_parser.add_argument("--run-id", dest="run_id", type=str, default=None, help="Override generated run id")

    args = parser.parse_args(argv)

    if args.command == "run":
        return asyncio.run(_run_async(args))

    parser.error("Unknown command")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
