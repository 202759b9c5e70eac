"""webdriver-harness - end-to-end browser test harness.

Starts the application under test and a WebDriver server, then exposes an
automation session with polling element queries to the test bodies.
"""

from webdriver_harness.config import HarnessSettings
from webdriver_harness.errors import (
    AssertionFailure,
    DriverResolutionFailure,
    HarnessError,
    ReadinessTimeout,
    SessionFailure,
    SpawnFailure,
)
from webdriver_harness.harness import ApplicationHarness

__all__ = [
    "ApplicationHarness",
    "AssertionFailure",
    "DriverResolutionFailure",
    "HarnessError",
    "HarnessSettings",
    "ReadinessTimeout",
    "SessionFailure",
    "SpawnFailure",
]
