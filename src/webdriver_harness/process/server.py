"""Launch a child process that serves on an ephemeral loopback port."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable

from webdriver_harness.errors import ReadinessTimeout
from webdriver_harness.process.child import Command, ManagedProcess

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"


def find_free_port(host: str = LOOPBACK) -> int:
    """Ask the OS for a free port number, then release it.

    The child binds the number itself later, so another process may grab it
    in between.  That window is accepted for test runs.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


def wait_for_port(
    host: str,
    port: int,
    timeout: float = 5.0,
    interval: float = 0.1,
) -> bool:
    """Poll until a TCP connection to ``host:port`` succeeds.

    Returns ``False`` once *timeout* seconds elapsed without a successful
    connect.
    """
    start_time = time.monotonic()
    while time.monotonic() - start_time < timeout:
        try:
            with socket.create_connection((host, port), timeout=interval):
                return True
        except OSError as e:
            logger.debug(f"Port {port} not ready yet: {e}")
        time.sleep(interval)
    return False


class ServiceEndpoint:
    """A running service: its base URL and the process that owns the port."""

    def __init__(self, name: str, port: int, process: ManagedProcess) -> None:
        self.name = name
        self.port = port
        self.url = f"http://{LOOPBACK}:{port}"
        self.process = process

    def stop(self, print_output: bool = False) -> None:
        self.process.stop(print_output)

    def __enter__(self) -> ServiceEndpoint:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.process.stop(print_output=exc_type is not None)

    def __repr__(self) -> str:
        return f"ServiceEndpoint(name={self.name!r}, url={self.url!r})"


def start_service(
    name: str,
    build_command: Callable[[int], Command],
    timeout: float = 5.0,
    interval: float = 0.1,
) -> ServiceEndpoint:
    """Spawn ``build_command(port)`` and wait for it to accept connections.

    Raises :class:`ReadinessTimeout` (after stopping the process and printing
    its output) if the port never accepts a connection within *timeout*.
    """
    port = find_free_port()
    process = ManagedProcess.spawn(name, build_command(port))

    if not wait_for_port(LOOPBACK, port, timeout=timeout, interval=interval):
        process.stop(print_output=True)
        raise ReadinessTimeout(name, port, timeout)

    endpoint = ServiceEndpoint(name, port, process)
    logger.info(f"{name} is ready at {endpoint.url}")
    return endpoint
