"""Try-each-selector UI actions used by the login flow."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from catalog_sync.json_logger import JsonLogger

DEFAULT_VISIBILITY_TIMEOUT_MS = 1_000


class LocatorProvider(Protocol):
    """Anything with Playwright's ``page.locator(selector)`` shape."""

    def locator(self, selector: str) -> Any: ...


class ActionKind(enum.Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionResult:
    kind: ActionKind
    selector: str | None = None
    attempted: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is ActionKind.SUCCESS


async def _visible_locator(page: LocatorProvider, selector: str, timeout_ms: int) -> Any | None:
    try:
        element = page.locator(selector).first
        await element.wait_for(state="visible", timeout=timeout_ms)
    except Exception:
        return None
    return element


async def first_visible(
    page: LocatorProvider,
    selectors: Sequence[str],
    *,
    timeout_ms: int = DEFAULT_VISIBILITY_TIMEOUT_MS,
) -> str | None:
    """Return the first selector whose element becomes visible, without acting on it."""

    for selector in selectors:
        if await _visible_locator(page, selector, timeout_ms) is not None:
            return selector
    return None


async def _act_on_first(
    page: LocatorProvider,
    selectors: Sequence[str],
    *,
    action: str,
    logger: JsonLogger | None,
    timeout_ms: int,
    **action_kwargs: Any,
) -> ActionResult:
    attempted: list[str] = []
    last_error: str | None = None

    for selector in selectors:
        attempted.append(selector)
        element = await _visible_locator(page, selector, timeout_ms)
        if element is None:
            continue
        try:
            if action == "fill":
                await element.fill(action_kwargs["value"])
            else:
                await element.click(**action_kwargs)
        except Exception as exc:
            last_error = str(exc)
            if logger:
                logger.debug(
                    phase="actions",
                    message=f"{action} failed on visible element",
                    selector=selector,
                    error=last_error,
                )
            continue

        if logger:
            logger.debug(phase="actions", message=f"{action} succeeded", selector=selector)
        return ActionResult(ActionKind.SUCCESS, selector=selector, attempted=tuple(attempted))

    kind = ActionKind.FAILED if last_error else ActionKind.NOT_FOUND
    if logger:
        logger.debug(
            phase="actions",
            message=f"no element accepted {action}",
            result=kind.value,
            attempted=len(attempted),
        )
    return ActionResult(kind, attempted=tuple(attempted), error=last_error)


async def click_first(
    page: LocatorProvider,
    selectors: Sequence[str],
    *,
    logger: JsonLogger | None = None,
    timeout_ms: int = DEFAULT_VISIBILITY_TIMEOUT_MS,
    **click_options: Any,
) -> ActionResult:
    return await _act_on_first(
        page, selectors, action="click", logger=logger, timeout_ms=timeout_ms, **click_options
    )


async def fill_first(
    page: LocatorProvider,
    selectors: Sequence[str],
    value: str,
    *,
    logger: JsonLogger | None = None,
    timeout_ms: int = DEFAULT_VISIBILITY_TIMEOUT_MS,
) -> ActionResult:
    return await _act_on_first(
        page, selectors, action="fill", logger=logger, timeout_ms=timeout_ms, value=value
    )
