"""Minimal asynchronous W3C WebDriver client.

Covers what the harness drives: session creation and deletion, navigation,
window handling, element lookup by CSS selector, and element text, click
and keyboard input.  Every call goes through :meth:`WebDriverClient._call`,
which turns protocol errors, transport errors and timeouts into
:class:`SessionFailure`.

Selenium's own remote client is blocking, so it cannot run on the
session's private event loop; only its ``Options`` classes are used, to build
capability payloads.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from webdriver_harness.errors import SessionFailure

logger = logging.getLogger(__name__)

# W3C element reference key
ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"


class WebElement:
    """A reference to an element in the remote browser."""

    def __init__(self, client: WebDriverClient, element_id: str) -> None:
        self._client = client
        self.id = element_id

    async def text(self) -> str:
        return await self._client._call("GET", f"element/{self.id}/text")

    async def click(self) -> None:
        await self._client._call("POST", f"element/{self.id}/click", {})

    async def send_keys(self, text: str) -> None:
        await self._client._call("POST", f"element/{self.id}/value", {"text": text})

    def __eq__(self, other: object) -> bool:
        return isinstance(other, WebElement) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"WebElement({self.id!r})"


class WebDriverClient:
    """One WebDriver session on a remote end."""

    def __init__(self, http: httpx.AsyncClient, session_id: str) -> None:
        self._http = http
        self.session_id = session_id
        self._closed = False

    @classmethod
    async def create(
        cls,
        base_url: str,
        capabilities: dict[str, Any],
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> WebDriverClient:
        """Open a new session with *capabilities* on the server at *base_url*."""
        http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )
        try:
            value = await _request(
                http, "POST", "/session", {"capabilities": {"alwaysMatch": capabilities}}
            )
        except BaseException:
            await http.aclose()
            raise

        session_id = value.get("sessionId") if isinstance(value, dict) else None
        if not session_id:
            await http.aclose()
            raise SessionFailure(f"New session response has no session id: {value!r}")
        logger.info(f"Opened WebDriver session {session_id} at {base_url}")
        return cls(http, session_id)

    @property
    def closed(self) -> bool:
        return self._closed

    async def _call(self, method: str, path: str, payload: dict | None = None) -> Any:
        if self._closed:
            raise SessionFailure(f"Session {self.session_id} is already closed")
        return await _request(
            self._http, method, f"/session/{self.session_id}/{path}", payload
        )

    # ── navigation ──────────────────────────────────────────────

    async def goto(self, url: str) -> None:
        await self._call("POST", "url", {"url": url})

    async def current_url(self) -> str:
        return await self._call("GET", "url")

    # ── windows ─────────────────────────────────────────────────

    async def window(self) -> str:
        return await self._call("GET", "window")

    async def windows(self) -> list[str]:
        return await self._call("GET", "window/handles")

    async def switch_to_window(self, handle: str) -> None:
        await self._call("POST", "window", {"handle": handle})

    async def new_tab(self) -> str:
        value = await self._call("POST", "window/new", {"type": "tab"})
        return value["handle"]

    # ── elements ────────────────────────────────────────────────

    async def find_all(self, selector: str) -> list[WebElement]:
        value = await self._call(
            "POST", "elements", {"using": "css selector", "value": selector}
        )
        return [WebElement(self, ref[ELEMENT_KEY]) for ref in value]

    # ── lifecycle ───────────────────────────────────────────────

    async def quit(self) -> None:
        """Delete the remote session and close the HTTP client, once."""
        if self._closed:
            return
        self._closed = True
        try:
            await _request(self._http, "DELETE", f"/session/{self.session_id}")
            logger.info(f"Closed WebDriver session {self.session_id}")
        finally:
            await self._http.aclose()


async def _request(
    http: httpx.AsyncClient,
    method: str,
    path: str,
    payload: dict | None = None,
) -> Any:
    """Send one WebDriver command and return the ``value`` of the reply."""
    logger.debug(f"{method} {path} {payload if payload is not None else ''}")
    try:
        response = await http.request(method, path, json=payload)
    except httpx.TimeoutException as e:
        raise SessionFailure(f"{method} {path} timed out") from e
    except httpx.HTTPError as e:
        raise SessionFailure(f"{method} {path} failed: {e}") from e

    try:
        body = response.json()
    except ValueError as e:
        raise SessionFailure(
            f"{method} {path} returned a non-JSON body (HTTP {response.status_code})",
            status=response.status_code,
        ) from e

    value = body.get("value") if isinstance(body, dict) else None
    if response.is_success:
        return value

    if isinstance(value, dict):
        error = value.get("error")
        message = value.get("message") or error
    else:
        error, message = None, response.text
    raise SessionFailure(
        f"{method} {path} failed: {message}",
        error=error,
        status=response.status_code,
    )
