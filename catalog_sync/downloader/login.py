"""Portal login as an explicit sequence of state transitions.

NOT_STARTED -> NAVIGATED -> CONSENT_HANDLED -> CREDENTIALS_ENTERED -> SUBMITTED
-> VERIFICATION_PENDING -> LOGGED_IN | LOGIN_FAILED

Every step either returns the next state or raises; LOGIN_FAILED is turned
into a :class:`LoginError` so the surrounding retry loop sees it as a failed
attempt.
"""
from __future__ import annotations

import asyncio
import enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Sequence

from catalog_sync.config import Config
from catalog_sync.errors import LoginError
from catalog_sync.json_logger import JsonLogger, log_event

from .actions import click_first, fill_first, first_visible
from .diagnostics import capture_diagnostics
from .page_selectors import SELECTOR_ROLES

LOGIN_PATH_MARKERS = ("/login",)
ACCOUNT_PATH_MARKERS = ("/account", "/dashboard")


class LoginState(enum.Enum):
    NOT_STARTED = "not_started"
    NAVIGATED = "navigated"
    CONSENT_HANDLED = "consent_handled"
    CREDENTIALS_ENTERED = "credentials_entered"
    SUBMITTED = "submitted"
    VERIFICATION_PENDING = "verification_pending"
    LOGGED_IN = "logged_in"
    LOGIN_FAILED = "login_failed"


TERMINAL_STATES = frozenset({LoginState.LOGGED_IN, LoginState.LOGIN_FAILED})


def url_indicates_login(url: str | None, base_url: str) -> bool:
    """URL signal: off the login path and on an account page or the site root."""

    current = (url or "").strip()
    if not current:
        return False
    if any(marker in current for marker in LOGIN_PATH_MARKERS):
        return False
    if any(marker in current for marker in ACCOUNT_PATH_MARKERS):
        return True
    return current.rstrip("/") == base_url.strip().rstrip("/")


async def verify_login(
    page: Any,
    *,
    base_url: str,
    indicators: Sequence[str],
    timeout_ms: int,
    logger: JsonLogger | None = None,
) -> bool:
    current_url = page.url or ""
    if url_indicates_login(current_url, base_url):
        if logger:
            logger.debug(phase="login", message="login confirmed by URL", current_url=current_url)
        return True

    indicator = await first_visible(page, indicators, timeout_ms=timeout_ms)
    if indicator is not None:
        if logger:
            logger.debug(phase="login", message="login confirmed by account indicator", selector=indicator)
        return True
    return False


class LoginFlow:
    def __init__(
        self,
        page: Any,
        *,
        config: Config,
        logger: JsonLogger,
        selectors: Mapping[str, Sequence[str]] = SELECTOR_ROLES,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.page = page
        self.config = config
        self.logger = logger
        self.selectors = selectors
        self.sleep = sleep
        self.state = LoginState.NOT_STARTED
        self.history: list[LoginState] = [self.state]
        self._handlers: Dict[LoginState, Callable[[], Awaitable[LoginState]]] = {
            LoginState.NOT_STARTED: self._navigate,
            LoginState.NAVIGATED: self._handle_consent,
            LoginState.CONSENT_HANDLED: self._enter_credentials,
            LoginState.CREDENTIALS_ENTERED: self._submit,
            LoginState.SUBMITTED: self._wait_for_settle,
            LoginState.VERIFICATION_PENDING: self._verify,
        }

    def _transition(self, state: LoginState) -> None:
        self.logger.debug(
            phase="login",
            message="login state transition",
            from_state=self.state.value,
            to_state=state.value,
        )
        self.state = state
        self.history.append(state)

    async def run(self) -> LoginState:
        log_event(logger=self.logger, phase="login", message="starting login", login_url=self.config.login_url)
        try:
            while self.state not in TERMINAL_STATES:
                next_state = await self._handlers[self.state]()
                self._transition(next_state)

            if self.state is LoginState.LOGIN_FAILED:
                raise LoginError(
                    "Login verification failed - still on login page or no account indicators found"
                )
        except Exception as exc:
            self.logger.error(
                phase="login",
                message="login attempt failed",
                state=self.state.value,
                error=str(exc),
            )
            await capture_diagnostics(self.page, kind="login", config=self.config, logger=self.logger)
            raise

        log_event(logger=self.logger, phase="login", message="login successful", current_url=self.page.url)
        return self.state

    async def _navigate(self) -> LoginState:
        await self.page.goto(
            self.config.login_url,
            wait_until="networkidle",
            timeout=self.config.navigation_timeout_ms,
        )
        return LoginState.NAVIGATED

    async def _handle_consent(self) -> LoginState:
        result = await click_first(
            self.page,
            self.selectors["cookie_accept"],
            logger=self.logger,
            timeout_ms=self.config.visibility_timeout_ms,
        )
        if result.ok:
            self.logger.debug(phase="login", message="cookie consent accepted", selector=result.selector)
            await self.sleep(self.config.consent_settle_ms / 1000)
        return LoginState.CONSENT_HANDLED

    async def _enter_credentials(self) -> LoginState:
        email = await fill_first(
            self.page,
            self.selectors["email"],
            self.config.username,
            logger=self.logger,
            timeout_ms=self.config.visibility_timeout_ms,
        )
        if not email.ok:
            raise LoginError("Could not find email input field")

        password = await fill_first(
            self.page,
            self.selectors["password"],
            self.config.password,
            logger=self.logger,
            timeout_ms=self.config.visibility_timeout_ms,
        )
        if not password.ok:
            raise LoginError("Could not find password input field")
        return LoginState.CREDENTIALS_ENTERED

    async def _submit(self) -> LoginState:
        result = await click_first(
            self.page,
            self.selectors["submit"],
            logger=self.logger,
            timeout_ms=self.config.visibility_timeout_ms,
        )
        if not result.ok:
            await self.page.keyboard.press("Enter")
            self.logger.debug(phase="login", message="submitted form with Enter key")
        return LoginState.SUBMITTED

    async def _wait_for_settle(self) -> LoginState:
        await self.page.wait_for_load_state("networkidle", timeout=self.config.navigation_timeout_ms)
        return LoginState.VERIFICATION_PENDING

    async def _verify(self) -> LoginState:
        logged_in = await verify_login(
            self.page,
            base_url=self.config.base_url,
            indicators=self.selectors["account_indicators"],
            timeout_ms=self.config.visibility_timeout_ms,
            logger=self.logger,
        )
        return LoginState.LOGGED_IN if logged_in else LoginState.LOGIN_FAILED


async def perform_login(page: Any, *, config: Config, logger: JsonLogger) -> LoginState:
    return await LoginFlow(page, config=config, logger=logger).run()
