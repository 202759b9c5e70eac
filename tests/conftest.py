"""Shared fixtures for webdriver-harness tests."""

from __future__ import annotations

import json
import re
from collections.abc import Callable

import httpx
import pytest

from webdriver_harness.config import HarnessSettings
from webdriver_harness.webdriver.locator import DriverKind
from webdriver_harness.webdriver.protocol import ELEMENT_KEY

_SESSION_PATH = re.compile(r"^/session/(?P<sid>[^/]+)(?:/(?P<rest>.*))?$")


class FakeWebDriver:
    """In-memory stand-in for a W3C WebDriver server.

    ``elements`` maps a CSS selector to either a list of texts or a callable
    returning one; every text becomes an element whose id is
    ``"e<selector number>-<index>"``.
    """

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict | None]] = []
        self.sessions: set[str] = set()
        self.capabilities: dict | None = None
        self.windows = ["window-1"]
        self.current_window = "window-1"
        self.urls = {"window-1": "about:blank"}
        self.elements: dict[str, list[str] | Callable[[], list[str]]] = {}
        self.typed: dict[str, str] = {}
        self.clicked: list[str] = []
        self.stale: set[str] = set()
        self._selectors: list[str] = []
        self.fail_delete = False

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def texts(self, selector: str) -> list[str]:
        texts = self.elements.get(selector, [])
        return texts() if callable(texts) else list(texts)

    def element_id(self, selector: str, index: int) -> str:
        if selector not in self._selectors:
            self._selectors.append(selector)
        return f"e{self._selectors.index(selector)}-{index}"

    def _text_of(self, element_id: str) -> str:
        number, _, index = element_id[1:].partition("-")
        return self.texts(self._selectors[int(number)])[int(index)]

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, payload))

        if request.method == "POST" and request.url.path == "/session":
            self.capabilities = payload["capabilities"]["alwaysMatch"]
            self.sessions.add("sid-1")
            return _ok({"sessionId": "sid-1", "capabilities": self.capabilities})

        match = _SESSION_PATH.match(request.url.path)
        if match is None or match["sid"] not in self.sessions:
            return _error(404, "invalid session id", "No such session")
        rest = match["rest"] or ""
        route = (request.method, rest)

        if route == ("DELETE", ""):
            if self.fail_delete:
                return _error(500, "unknown error", "delete failed")
            self.sessions.discard(match["sid"])
            return _ok(None)
        if route == ("POST", "url"):
            self.urls[self.current_window] = payload["url"]
            return _ok(None)
        if route == ("GET", "url"):
            return _ok(self.urls[self.current_window])
        if route == ("GET", "window"):
            return _ok(self.current_window)
        if route == ("GET", "window/handles"):
            return _ok(list(self.windows))
        if route == ("POST", "window"):
            if payload["handle"] not in self.windows:
                return _error(404, "no such window", "No such window")
            self.current_window = payload["handle"]
            return _ok(None)
        if route == ("POST", "window/new"):
            handle = f"window-{len(self.windows) + 1}"
            self.windows.append(handle)
            self.urls[handle] = "about:blank"
            return _ok({"handle": handle, "type": "tab"})
        if route == ("POST", "elements"):
            selector = payload["value"]
            refs = [
                {ELEMENT_KEY: self.element_id(selector, i)}
                for i in range(len(self.texts(selector)))
            ]
            return _ok(refs)

        element = re.match(r"^element/(?P<eid>.+)/(?P<action>text|click|value)$", rest)
        if element is not None:
            eid = element["eid"]
            if eid in self.stale:
                return _error(404, "stale element reference", "Element is stale")
            if element["action"] == "text":
                return _ok(self._text_of(eid))
            if element["action"] == "click":
                self.clicked.append(eid)
                return _ok(None)
            self.typed[eid] = self.typed.get(eid, "") + payload["text"]
            return _ok(None)

        return _error(404, "unknown command", f"{request.method} {rest}")


def _ok(value) -> httpx.Response:
    return httpx.Response(200, json={"value": value})


def _error(status: int, error: str, message: str) -> httpx.Response:
    return httpx.Response(
        status, json={"value": {"error": error, "message": message, "stacktrace": ""}}
    )


@pytest.fixture
def fake_webdriver() -> FakeWebDriver:
    return FakeWebDriver()


@pytest.fixture
def fast_settings() -> HarnessSettings:
    """Settings with short polling bounds for quick tests."""
    return HarnessSettings(
        demo_mode=False,
        query_timeout=0.3,
        query_interval=0.05,
        readiness_timeout=5.0,
        readiness_interval=0.1,
    )


@pytest.fixture
def clean_driver_env(monkeypatch: pytest.MonkeyPatch):
    """Remove every driver discovery variable from the environment."""
    for kind in DriverKind:
        for suffix in ("", "_REMOTE", "_ARGS"):
            monkeypatch.delenv(f"{kind.env_name}{suffix}", raising=False)
    monkeypatch.delenv("DEMO_MODE", raising=False)
    return monkeypatch
