"""Error taxonomy for the harness.

Setup failures (spawn, readiness, driver resolution, session creation) are
fatal for the test that triggered them.  Cleanup code never raises these.
"""

from __future__ import annotations

from collections.abc import Sequence

DRIVER_RESOLUTION_HELP = """\
failed to find a suitable WebDriver binary or remote running WebDriver to drive
testing; to configure the location of the webdriver binary you can use
environment variables like `GECKODRIVER=/path/to/geckodriver`
or `GECKODRIVER=auto` (for gecko and chrome it will be downloaded if not present locally)
or make sure that the binary is in `PATH`; to configure the address of remote webdriver you can
use environment variables like `GECKODRIVER_REMOTE=http://remote.host/`;
extra driver arguments are read from variables like `GECKODRIVER_ARGS`

Supported drivers are `geckodriver`, `safaridriver`, `chromedriver` and
`msedgedriver`. You can download these at:

    * geckodriver - https://github.com/mozilla/geckodriver/releases
    * chromedriver - https://chromedriver.chromium.org/downloads
    * msedgedriver - https://developer.microsoft.com/en-us/microsoft-edge/tools/webdriver/
    * safaridriver - should be preinstalled on OSX
"""


class HarnessError(Exception):
    """Base class for every harness failure."""


class SpawnFailure(HarnessError):
    """The OS refused to start a child process."""

    def __init__(self, name: str, argv: Sequence[str], reason: str) -> None:
        self.name = name
        self.argv = list(argv)
        super().__init__(f"Failed to spawn {name} ({' '.join(self.argv)}): {reason}")


class ReadinessTimeout(HarnessError):
    """A launched service never accepted a connection on its port."""

    def __init__(self, name: str, port: int, timeout: float) -> None:
        self.name = name
        self.port = port
        self.timeout = timeout
        super().__init__(
            f"{name} failed to bind port {port} within {timeout:g}s of startup"
        )


class DriverResolutionFailure(HarnessError):
    """No usable WebDriver binary or remote endpoint was found or installed."""

    def __init__(self, message: str = DRIVER_RESOLUTION_HELP) -> None:
        super().__init__(message)


class SessionFailure(HarnessError):
    """A WebDriver call was rejected, failed in transit, or timed out."""

    def __init__(
        self,
        message: str,
        error: str | None = None,
        status: int | None = None,
    ) -> None:
        self.error = error
        self.status = status
        super().__init__(message)


class AssertionFailure(HarnessError, AssertionError):
    """Observed page state did not match the expectation."""
