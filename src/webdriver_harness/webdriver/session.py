"""Automation session bound to a private single-threaded event loop.

Test bodies are synchronous.  Each :class:`AutomationSession` owns its own
asyncio event loop, and :meth:`AutomationSession.run` drives one coroutine
to completion on it, so two operations on the same session never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Coroutine
from typing import Any, TypeVar

import httpx
from selenium.webdriver import ChromeOptions, EdgeOptions, FirefoxOptions, SafariOptions

from webdriver_harness.config import HarnessSettings
from webdriver_harness.errors import SessionFailure
from webdriver_harness.webdriver.locator import DriverKind
from webdriver_harness.webdriver.protocol import WebDriverClient, WebElement

logger = logging.getLogger(__name__)

T = TypeVar("T")

STALE_ELEMENT = "stale element reference"


def build_capabilities(kind: DriverKind, demo_mode: bool) -> dict[str, Any]:
    """Return the capability payload for *kind*.

    Firefox and Chrome run headless unless *demo_mode* is set.
    """
    if kind is DriverKind.FIREFOX:
        options = FirefoxOptions()
        if not demo_mode:
            options.add_argument("-headless")
    elif kind is DriverKind.CHROME:
        options = ChromeOptions()
        if not demo_mode:
            options.add_argument("--headless=new")
    elif kind is DriverKind.SAFARI:
        options = SafariOptions()
    else:
        options = EdgeOptions()
    return options.to_capabilities()


class ElementQuery:
    """Polling element lookup by CSS selector.

    Every probe fetches all elements matching the selector (optionally
    narrowed by their text).  Probing repeats every *interval* seconds until
    the terminal method is satisfied or *timeout* seconds have passed.
    """

    def __init__(
        self,
        client: WebDriverClient,
        selector: str,
        timeout: float = 3.0,
        interval: float = 0.5,
        text: str | None = None,
    ) -> None:
        self._client = client
        self.selector = selector
        self.timeout = timeout
        self.interval = interval
        self.text = text

    def wait(self, timeout: float, interval: float) -> ElementQuery:
        return ElementQuery(self._client, self.selector, timeout, interval, self.text)

    def with_text(self, text: str) -> ElementQuery:
        return ElementQuery(self._client, self.selector, self.timeout, self.interval, text)

    def _describe(self) -> str:
        if self.text is None:
            return repr(self.selector)
        return f"{self.selector!r} with text {self.text!r}"

    async def _probe(self) -> list[WebElement]:
        elements = await self._client.find_all(self.selector)
        if self.text is None:
            return elements

        matching = []
        for element in elements:
            try:
                if await element.text() == self.text:
                    matching.append(element)
            except SessionFailure as e:
                if e.error != STALE_ELEMENT:
                    raise
        return matching

    async def _poll(self, done) -> list[WebElement]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while True:
            elements = await self._probe()
            if done(elements) or loop.time() >= deadline:
                return elements
            logger.debug(f"Query {self._describe()} matched {len(elements)}, polling")
            await asyncio.sleep(max(0.0, min(self.interval, deadline - loop.time())))

    async def all(self) -> list[WebElement]:
        """Every match, once at least one exists or the timeout elapsed."""
        return await self._poll(lambda found: len(found) > 0)

    async def first(self) -> WebElement:
        elements = await self.all()
        if not elements:
            raise SessionFailure(
                f"No element matched {self._describe()} within {self.timeout:g}s",
                error="no such element",
            )
        return elements[0]

    async def single(self) -> WebElement:
        """The only match; fails once several match, or if none did by the timeout."""
        elements = await self.all()
        if len(elements) == 1:
            return elements[0]
        if not elements:
            raise SessionFailure(
                f"No element matched {self._describe()} within {self.timeout:g}s",
                error="no such element",
            )
        raise SessionFailure(
            f"Expected a single element for {self._describe()}, found {len(elements)}"
        )


class AutomationSession:
    """A WebDriver session together with its event loop and pacing flag."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        client: WebDriverClient,
        settings: HarnessSettings,
        demo_mode: bool = False,
    ) -> None:
        self._loop = loop
        self._client = client
        self.settings = settings
        self.demo_mode = demo_mode
        self.active_window: str | None = None

    @classmethod
    def open(
        cls,
        kind: DriverKind,
        endpoint_url: str,
        settings: HarnessSettings | None = None,
        demo_mode: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AutomationSession:
        """Create a session for *kind* on the WebDriver server at *endpoint_url*."""
        settings = settings or HarnessSettings()
        if demo_mode is None:
            demo_mode = settings.demo_mode
        capabilities = build_capabilities(kind, demo_mode)
        loop = asyncio.new_event_loop()
        try:
            client = loop.run_until_complete(
                WebDriverClient.create(
                    endpoint_url,
                    capabilities,
                    timeout=settings.request_timeout,
                    transport=transport,
                )
            )
        except BaseException:
            loop.close()
            raise
        return cls(loop, client, settings, demo_mode)

    @property
    def client(self) -> WebDriverClient:
        return self._client

    def run(self, operation: Awaitable[T]) -> T:
        """Run *operation* to completion on the session's event loop.

        Failures propagate unchanged and abort the calling test step.
        """
        if self._loop.is_closed():
            _discard(operation)
            raise SessionFailure("Automation session is closed")
        try:
            return self._loop.run_until_complete(operation)
        except Exception as e:
            logger.error(f"Automation step failed: {e}")
            raise

    # ── queries ─────────────────────────────────────────────────

    def query(self, selector: str) -> ElementQuery:
        return ElementQuery(
            self._client,
            selector,
            timeout=self.settings.query_timeout,
            interval=self.settings.query_interval,
        )

    async def query_single(self, selector: str) -> WebElement:
        # Polling rather than a single find: the page may still be updating.
        return await self.query(selector).single()

    async def query_all(self, selector: str) -> list[WebElement]:
        return await self.query(selector).all()

    # ── pacing ──────────────────────────────────────────────────

    async def demo_pause(self) -> None:
        if self.demo_mode:
            await asyncio.sleep(self.settings.demo_pause)

    # ── navigation and windows ──────────────────────────────────

    async def goto(self, url: str) -> None:
        await self._client.goto(url)

    async def current_url(self) -> str:
        return await self._client.current_url()

    async def window(self) -> str:
        return await self._client.window()

    async def new_tab(self) -> str:
        handle = await self._client.new_tab()
        self.active_window = handle
        return handle

    async def switch_to_window(self, handle: str) -> None:
        await self._client.switch_to_window(handle)
        self.active_window = handle

    # ── teardown ────────────────────────────────────────────────

    def close(self) -> None:
        """Quit the remote session and close the loop; failures are logged."""
        if self._loop.is_closed():
            return
        try:
            self._loop.run_until_complete(self._client.quit())
        except Exception as e:
            logger.warning(f"Could not stop WebDriver session: {e!r}")
        finally:
            self._loop.close()

    def __enter__(self) -> AutomationSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _discard(operation: Awaitable[Any]) -> None:
    if isinstance(operation, Coroutine):
        operation.close()
