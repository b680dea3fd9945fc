"""Pytest fixtures for autobdd tests."""

from __future__ import annotations

import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from autobdd.dsl.models import InstructionSet


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeDriver:
    """
    In-memory Driver.

    ``present`` maps selectors to handles; any other selector times out.
    ``html`` is what page_source() returns during healing.
    """

    def __init__(self, present: dict[str, Any] | None = None, html: str = "") -> None:
        self.present: dict[str, Any] = dict(present or {})
        self.html = html
        self.lookups: list[str] = []
        self.clicked: list[Any] = []
        self.values: list[tuple[Any, str]] = []
        self.texts: dict[Any, str] = {}
        self.hidden: set[Any] = set()
        self.fail_actions: set[str] = set()
        self.page_source_calls = 0
        self.page_source_error: Exception | None = None

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> Any | None:
        self.lookups.append(selector)
        return self.present.get(selector)

    async def page_source(self) -> str:
        self.page_source_calls += 1
        if self.page_source_error is not None:
            raise self.page_source_error
        return self.html

    async def click(self, handle: Any) -> None:
        if "click" in self.fail_actions:
            raise RuntimeError("element is not clickable")
        self.clicked.append(handle)

    async def set_value(self, handle: Any, value: str) -> None:
        if "set_value" in self.fail_actions:
            raise RuntimeError("element is read-only")
        self.values.append((handle, value))

    async def get_text(self, handle: Any) -> str:
        if "get_text" in self.fail_actions:
            raise RuntimeError("detached from DOM")
        return self.texts.get(handle, "")

    async def is_displayed(self, handle: Any) -> bool:
        if "is_displayed" in self.fail_actions:
            raise RuntimeError("stale element")
        return handle not in self.hidden


LOGIN_HTML = """
<html>
  <body>
    <h1 class="page-title">Sign in</h1>
    <form id="login-form" action="/session" method="post">
      <input id="username" name="username" type="text" placeholder="Username">
      <input id="password" name="password" type="password" placeholder="Password">
      <button id="login-btn" type="submit">Log in</button>
    </form>
    <a href="/forgot">Forgot password?</a>
    <div class="error-message" role="alert"></div>
  </body>
</html>
"""

DASHBOARD_HTML = """
<html>
  <body>
    <h1>Dashboard</h1>
    <div id="flash" class="success-message">Welcome back!</div>
    <a id="logout" href="/logout">Log out</a>
  </body>
</html>
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def login_html() -> str:
    return LOGIN_HTML


@pytest.fixture
def dashboard_html() -> str:
    return DASHBOARD_HTML


@pytest.fixture
def login_steps() -> list[str]:
    return [
        "enter username 'john'",
        "enter password 'x'",
        "click login button",
        "see success message",
    ]


@pytest.fixture
def sample_instructions_data(login_steps: list[str]) -> dict[str, Any]:
    """Instruction set with declared login and dashboard pages."""
    return {
        "project": "Demo Shop",
        "url": "https://shop.example.com",
        "description": "Login flow",
        "testCases": [
            {
                "name": "Successful login",
                "tags": ["smoke"],
                "steps": login_steps,
            }
        ],
        "pages": [
            {"name": "login", "keywords": ["username", "password", "login"]},
            {"name": "dashboard", "keywords": ["success"]},
        ],
    }


@pytest.fixture
def sample_instructions(sample_instructions_data: dict[str, Any]) -> InstructionSet:
    return InstructionSet.model_validate(sample_instructions_data)


@pytest.fixture
def sample_instructions_yaml() -> str:
    return """
project: Demo Shop
url: https://shop.example.com
testCases:
  - name: Successful login
    steps:
      - enter username 'john'
      - enter password 'x'
      - click login button
      - text: see success message
        page: dashboard
pages:
  - name: login
    keywords: [username, password, login]
  - name: dashboard
    keywords: [success]
"""


@pytest.fixture
def driver_factory() -> type[FakeDriver]:
    """The FakeDriver class, for tests that build their own driver."""
    return FakeDriver
