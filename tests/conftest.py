from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Iterator

import pytest

from catalog_sync.config import Config
from catalog_sync.json_logger import JsonLogger

BASE_URL = "https://shop.example.com"
LOGIN_URL = f"{BASE_URL}/customer/account/login"
EXPORT_URL = f"{BASE_URL}/export/catalog.csv"


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str) -> None:
        self._page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def wait_for(self, *, state: str = "visible", timeout: int | None = None) -> None:
        self._page.visibility_checks.append(self.selector)
        if self.selector in self._page.check_errors:
            raise RuntimeError(f"visibility check crashed for {self.selector}")
        if self.selector not in self._page.visible:
            raise TimeoutError(f"Timeout {timeout}ms waiting for {self.selector}")

    async def click(self, **kwargs: Any) -> None:
        if self.selector in self._page.action_errors:
            raise RuntimeError(f"element detached: {self.selector}")
        self._page.actions.append(("click", self.selector, None))

    async def fill(self, value: str) -> None:
        if self.selector in self._page.action_errors:
            raise RuntimeError(f"element detached: {self.selector}")
        self._page.actions.append(("fill", self.selector, value))


class FakeKeyboard:
    def __init__(self) -> None:
        self.presses: list[str] = []

    async def press(self, key: str) -> None:
        self.presses.append(key)


class FakeResponse:
    def __init__(self, *, status: int = 200, body: bytes = b"", content_type: str = "text/csv") -> None:
        self.status = status
        self.headers = {"content-type": content_type} if content_type else {}
        self._body = body

    async def body(self) -> bytes:
        return self._body


class FakeRequest:
    def __init__(self, responses: list[FakeResponse]) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


class FakePage:
    """In-memory stand-in for a Playwright page.

    ``visible`` holds the selectors that resolve to a visible element.
    Navigation lands on ``url_after_goto``; settling after submit lands on
    ``url_after_submit``.
    """

    def __init__(
        self,
        *,
        visible: set[str] | None = None,
        url: str = "about:blank",
        url_after_goto: str | None = None,
        url_after_submit: str | None = None,
        check_errors: set[str] | None = None,
        action_errors: set[str] | None = None,
        responses: list[FakeResponse] | None = None,
        html: str = "<html><body>login</body></html>",
    ) -> None:
        self.visible = set(visible or ())
        self.url = url
        self.url_after_goto = url_after_goto
        self.url_after_submit = url_after_submit
        self.check_errors = set(check_errors or ())
        self.action_errors = set(action_errors or ())
        self.keyboard = FakeKeyboard()
        self.request = FakeRequest(responses or [FakeResponse(body=b"id,name\n1,a\n")])
        self.html = html
        self.visibility_checks: list[str] = []
        self.actions: list[tuple[str, str, str | None]] = []
        self.gotos: list[str] = []
        self.screenshots: list[str] = []
        self.closed = False

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.gotos.append(url)
        self.url = self.url_after_goto or url

    async def wait_for_load_state(self, state: str = "load", **kwargs: Any) -> None:
        if self.url_after_submit is not None:
            self.url = self.url_after_submit

    async def screenshot(self, *, path: str, full_page: bool = False) -> None:
        Path(path).write_bytes(b"\x89PNG")
        self.screenshots.append(path)

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.closed = True


def make_config(tmp_path: Path, **overrides: Any) -> Config:
    values: dict[str, Any] = {
        "base_url": BASE_URL,
        "login_url": LOGIN_URL,
        "export_url": EXPORT_URL,
        "username": "buyer@example.com",
        "password": "s3cret",
        "output_dir": tmp_path / "output",
        "diagnostics_dir": tmp_path / "screenshots",
    }
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return make_config(tmp_path)


@pytest.fixture
def config_factory(tmp_path: Path):
    return lambda **overrides: make_config(tmp_path, **overrides)


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> Iterator[JsonLogger]:
    json_logger = JsonLogger(run_id="run-test", stream=log_stream, log_file_path=None, level="DEBUG")
    yield json_logger
    json_logger.close()


@pytest.fixture
def page_factory():
    return FakePage


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep
