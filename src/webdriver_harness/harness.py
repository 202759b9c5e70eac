"""Composition root: application, WebDriver server and automation session."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import ExitStack

from webdriver_harness.config import HarnessSettings
from webdriver_harness.process.child import Command
from webdriver_harness.process.server import ServiceEndpoint, start_service
from webdriver_harness.webdriver.locator import DriverInfo, resolve_driver
from webdriver_harness.webdriver.process import DriverProcess
from webdriver_harness.webdriver.session import AutomationSession

logger = logging.getLogger(__name__)


class ApplicationHarness:
    """Everything a browser test needs, torn down in a fixed order.

    ``start()`` launches the application, resolves and starts (or connects
    to) a WebDriver server and opens a session against it.  Any failure
    tears down the stages already started and propagates.  Teardown stops
    the session, then the driver, then the application; each stage runs
    even if an earlier one failed, and child output is printed when the
    harness is left because of an error.

    Usage::

        with ApplicationHarness.start() as app:
            app.webdriver.run(app.webdriver.goto(app.app_url))
    """

    def __init__(
        self,
        application: ServiceEndpoint,
        driver_info: DriverInfo,
        driver_process: DriverProcess,
        session: AutomationSession,
        stack: ExitStack,
    ) -> None:
        self.application = application
        self.driver_info = driver_info
        self.driver_process = driver_process
        self.session = session
        self._stack = stack

    @classmethod
    def start(
        cls,
        settings: HarnessSettings | None = None,
        driver_info: DriverInfo | None = None,
    ) -> ApplicationHarness:
        settings = settings or HarnessSettings()

        with ExitStack() as stack:
            application = start_application(settings)
            stack.push(_teardown("application", application.stop))

            if driver_info is None:
                driver_info = resolve_driver()

            driver_process = DriverProcess.start(
                driver_info.location,
                timeout=settings.readiness_timeout,
                interval=settings.readiness_interval,
            )
            stack.push(_teardown("webdriver", driver_process.stop))

            session = AutomationSession.open(
                driver_info.kind, driver_process.get_url(), settings=settings
            )
            stack.push(_teardown("session", lambda print_output: session.close()))

            logger.info(
                f"Harness ready: application at {application.url}, "
                f"{driver_info.kind.binary} at {driver_process.get_url()}"
            )
            return cls(
                application, driver_info, driver_process, session, stack.pop_all()
            )

    @property
    def app_url(self) -> str:
        return self.application.url

    @property
    def webdriver(self) -> AutomationSession:
        return self.session

    def close(self) -> None:
        self._stack.close()

    def __enter__(self) -> ApplicationHarness:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._stack.__exit__(exc_type, exc, tb)


def start_application(settings: HarnessSettings) -> ServiceEndpoint:
    """Launch the application under test on a fresh port."""
    argv = settings.get_app_argv()
    static_assets = str(settings.get_static_assets())

    def build(port: int) -> Command:
        return Command(argv, env={"PORT": str(port), "STATIC_ASSETS": static_assets})

    return start_service(
        "application",
        build,
        timeout=settings.readiness_timeout,
        interval=settings.readiness_interval,
    )


def _teardown(stage: str, stop: Callable[[bool], None]):
    """Wrap *stop* as an ExitStack exit callback that never raises."""

    def callback(exc_type, exc, tb) -> bool:
        try:
            stop(exc_type is not None)
        except Exception as e:
            logger.warning(f"Could not stop {stage}: {e!r}")
        return False

    return callback
