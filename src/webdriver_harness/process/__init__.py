"""Child process management: output capture and network service launch."""

from webdriver_harness.process.child import Command, ManagedProcess
from webdriver_harness.process.server import ServiceEndpoint, find_free_port, start_service

__all__ = [
    "Command",
    "ManagedProcess",
    "ServiceEndpoint",
    "find_free_port",
    "start_service",
]
