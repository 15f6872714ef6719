from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from catalog_sync.config import Config


def generate_history_id(now: datetime | None = None) -> str:
    """Timestamp in ``YYYYMMDD-HHMMSS`` form; sorts chronologically as text."""

    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")


def history_filename(config: Config, history_id: str) -> str:
    return f"{config.history_prefix}{history_id}.csv"


def is_history_name(config: Config, name: str) -> bool:
    return name.startswith(config.history_prefix) and name.endswith(".csv")


def names_to_prune(names: Iterable[str], keep_count: int) -> List[str]:
    """Return the names beyond the newest ``keep_count`` (newest = greatest name)."""

    if keep_count <= 0:
        return []
    ordered = sorted(names, reverse=True)
    return ordered[keep_count:]
