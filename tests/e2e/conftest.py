"""Fixtures that start the chat server and a real browser session."""

from __future__ import annotations

import pytest

from webdriver_harness import ApplicationHarness, DriverResolutionFailure, HarnessSettings
from webdriver_harness.webdriver import DriverInfo, resolve_driver


@pytest.fixture(scope="session")
def driver_info() -> DriverInfo:
    """Resolve the WebDriver once per test run; skip browser tests without one."""
    try:
        return resolve_driver()
    except DriverResolutionFailure as e:
        pytest.skip(f"No WebDriver available: {e}")


@pytest.fixture
def app(driver_info: DriverInfo):
    with ApplicationHarness.start(HarnessSettings(), driver_info=driver_info) as harness:
        yield harness
