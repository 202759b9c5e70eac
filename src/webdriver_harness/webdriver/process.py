"""A WebDriver server we either launched ourselves or merely connect to."""

from __future__ import annotations

from webdriver_harness.process.child import Command
from webdriver_harness.process.server import ServiceEndpoint, start_service
from webdriver_harness.webdriver.locator import DriverLocation, LocalDriver, RemoteDriver


class DriverProcess:
    """Uniform access to the URL of a local or remote WebDriver server."""

    def __init__(self, url: str, endpoint: ServiceEndpoint | None = None) -> None:
        self._url = url
        self.endpoint = endpoint

    @classmethod
    def start(
        cls,
        location: DriverLocation,
        timeout: float = 5.0,
        interval: float = 0.1,
    ) -> DriverProcess:
        if isinstance(location, RemoteDriver):
            return cls(location.url)

        assert isinstance(location, LocalDriver)
        base = Command([str(location.path), *location.args])
        endpoint = start_service(
            "webdriver",
            lambda port: base.with_args(f"--port={port}"),
            timeout=timeout,
            interval=interval,
        )
        return cls(endpoint.url, endpoint)

    def get_url(self) -> str:
        return self._url

    @property
    def is_local(self) -> bool:
        return self.endpoint is not None

    def stop(self, print_output: bool = False) -> None:
        """Stop the driver if we launched it; remote servers are left alone."""
        if self.endpoint is not None:
            self.endpoint.stop(print_output)
