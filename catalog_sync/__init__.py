"""Portal login and catalog CSV export agent."""

from typing import Any

__all__ = ["run_agent"]


def __getattr__(name: str) -> Any:
    if name == "run_agent":
        from catalog_sync.downloader.pipeline import run_agent as _run_agent

        return _run_agent
    raise AttributeError(name)
