"""WebDriver discovery, server processes and automation sessions."""

from webdriver_harness.webdriver.locator import (
    DriverInfo,
    DriverKind,
    LocalDriver,
    RemoteDriver,
    resolve_driver,
)
from webdriver_harness.webdriver.process import DriverProcess
from webdriver_harness.webdriver.protocol import WebDriverClient, WebElement
from webdriver_harness.webdriver.session import (
    AutomationSession,
    ElementQuery,
    build_capabilities,
)

__all__ = [
    "AutomationSession",
    "DriverInfo",
    "DriverKind",
    "DriverProcess",
    "ElementQuery",
    "LocalDriver",
    "RemoteDriver",
    "WebDriverClient",
    "WebElement",
    "build_capabilities",
    "resolve_driver",
]
