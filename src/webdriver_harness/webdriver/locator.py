"""Select the WebDriver server to run the tests against.

Resolution is an ordered chain; the first resolver that finds something
wins:

1. ``<BINARY>_REMOTE`` (e.g. ``GECKODRIVER_REMOTE``) holding a URL of an
   already running server.
2. ``<BINARY>`` (e.g. ``GECKODRIVER``) holding a path to a driver binary, or
   ``auto`` to download it (geckodriver and chromedriver only).
3. The first directory on ``PATH`` containing any supported driver binary.

For local drivers extra arguments are read from ``<BINARY>_ARGS``.
Drivers are always tried in the order Firefox, Safari, Chrome, Edge.
"""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.selenium_manager import SeleniumManager

from webdriver_harness.errors import DriverResolutionFailure

logger = logging.getLogger(__name__)


class DriverKind(enum.Enum):
    """Supported browsers, keyed by their driver binary name."""

    FIREFOX = "geckodriver"
    SAFARI = "safaridriver"
    CHROME = "chromedriver"
    EDGE = "msedgedriver"

    @property
    def binary(self) -> str:
        return self.value

    @property
    def env_name(self) -> str:
        return self.value.upper()

    @property
    def browser_name(self) -> str:
        return _BROWSER_NAMES[self]

    @property
    def can_auto_install(self) -> bool:
        return self in (DriverKind.FIREFOX, DriverKind.CHROME)

    def executable_name(self) -> str:
        return self.binary + (".exe" if os.name == "nt" else "")


_BROWSER_NAMES = {
    DriverKind.FIREFOX: "firefox",
    DriverKind.SAFARI: "safari",
    DriverKind.CHROME: "chrome",
    DriverKind.EDGE: "MicrosoftEdge",
}


@dataclass(frozen=True)
class LocalDriver:
    """A driver binary to launch ourselves."""

    path: Path
    args: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RemoteDriver:
    """An already running WebDriver server."""

    url: str


DriverLocation = LocalDriver | RemoteDriver


@dataclass(frozen=True)
class DriverInfo:
    kind: DriverKind
    location: DriverLocation


Resolver = Callable[[Mapping[str, str]], DriverInfo | None]


def install_driver(kind: DriverKind) -> Path:
    """Locate a cached driver for *kind* or download it via Selenium Manager."""
    if not kind.can_auto_install:
        raise DriverResolutionFailure(
            f"Auto downloading is not supported for {kind.binary}"
        )
    try:
        paths = SeleniumManager().binary_paths(["--browser", kind.browser_name])
    except WebDriverException as e:
        raise DriverResolutionFailure(
            f"Could not install {kind.binary}: {e.msg or e}"
        ) from e

    driver_path = paths.get("driver_path")
    if not driver_path:
        raise DriverResolutionFailure(
            f"Selenium Manager returned no driver path for {kind.binary}"
        )
    logger.info(f"Using auto-installed {kind.binary} at {driver_path}")
    return Path(driver_path)


def _parse_url(value: str) -> str | None:
    parts = urlsplit(value.strip())
    if not parts.scheme or not parts.netloc:
        return None
    return value.strip()


def _driver_args(kind: DriverKind, environ: Mapping[str, str]) -> tuple[str, ...]:
    return tuple(environ.get(f"{kind.env_name}_ARGS", "").split())


def _from_remote_env(environ: Mapping[str, str]) -> DriverInfo | None:
    for kind in DriverKind:
        url = _parse_url(environ.get(f"{kind.env_name}_REMOTE", ""))
        if url is not None:
            return DriverInfo(kind, RemoteDriver(url))
    return None


def _from_local_env(
    environ: Mapping[str, str],
    installer: Callable[[DriverKind], Path] = install_driver,
) -> DriverInfo | None:
    for kind in DriverKind:
        value = environ.get(kind.env_name)
        if not value:
            continue
        if value.lower() == "auto":
            path = installer(kind)
        else:
            path = Path(value)
        return DriverInfo(kind, LocalDriver(path, _driver_args(kind, environ)))
    return None


def _from_search_path(environ: Mapping[str, str]) -> DriverInfo | None:
    for directory in environ.get("PATH", "").split(os.pathsep):
        if not directory:
            continue
        for kind in DriverKind:
            candidate = Path(directory) / kind.executable_name()
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return DriverInfo(kind, LocalDriver(candidate))
    return None


def resolve_driver(
    environ: Mapping[str, str] | None = None,
    installer: Callable[[DriverKind], Path] = install_driver,
) -> DriverInfo:
    """Run the resolution chain and return the first driver found.

    Raises :class:`DriverResolutionFailure` if no resolver found anything, or
    if ``auto`` was requested for a driver that cannot be downloaded.
    """
    environ = os.environ if environ is None else environ
    resolvers: list[Resolver] = [
        _from_remote_env,
        lambda env: _from_local_env(env, installer),
        _from_search_path,
    ]
    for resolver in resolvers:
        info = resolver(environ)
        if info is not None:
            logger.info(f"Resolved {info.kind.binary}: {info.location}")
            return info
    raise DriverResolutionFailure()
