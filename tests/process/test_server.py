"""Tests for webdriver_harness.process.server."""

from __future__ import annotations

import socket
import sys
import time
from unittest.mock import MagicMock, patch

import pytest

from webdriver_harness.errors import ReadinessTimeout
from webdriver_harness.process.child import Command
from webdriver_harness.process.server import (
    ServiceEndpoint,
    find_free_port,
    start_service,
    wait_for_port,
)


def _http_server(port: int) -> Command:
    return Command([sys.executable, "-m", "http.server", str(port), "--bind", "127.0.0.1"])


def _never_binds(port: int) -> Command:
    return Command([sys.executable, "-c", "import time; time.sleep(60)"])


class TestFindFreePort:
    def test_returns_bindable_port(self):
        port = find_free_port()

        assert 0 < port < 65536
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", port))


class TestWaitForPort:
    def test_listening_port_is_ready(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen()
            port = sock.getsockname()[1]

            assert wait_for_port("127.0.0.1", port, timeout=1.0)

    def test_closed_port_times_out(self):
        port = find_free_port()

        start = time.monotonic()
        ready = wait_for_port("127.0.0.1", port, timeout=0.3, interval=0.05)

        assert ready is False
        assert time.monotonic() - start >= 0.3


class TestStartService:
    def test_starts_and_reports_url(self):
        endpoint = start_service("http", _http_server)
        try:
            assert endpoint.url == f"http://127.0.0.1:{endpoint.port}"
            assert endpoint.process.running
            with socket.create_connection(("127.0.0.1", endpoint.port), timeout=1):
                pass
        finally:
            endpoint.stop()

        assert not endpoint.process.running

    def test_command_builder_receives_the_port(self):
        ports = []

        def build(port: int) -> Command:
            ports.append(port)
            return _http_server(port)

        with start_service("http", build) as endpoint:
            assert ports == [endpoint.port]

    def test_readiness_timeout_window(self, capsys):
        start = time.monotonic()

        with pytest.raises(ReadinessTimeout) as exc_info:
            start_service("silent", _never_binds)

        elapsed = time.monotonic() - start
        assert 5.0 <= elapsed <= 5.5
        assert exc_info.value.name == "silent"
        assert "silent status:" in capsys.readouterr().out

    def test_readiness_timeout_stops_process(self):
        with patch("webdriver_harness.process.server.wait_for_port", return_value=False):
            with patch("webdriver_harness.process.server.ManagedProcess.spawn") as mock_spawn:
                with pytest.raises(ReadinessTimeout):
                    start_service("svc", _never_binds, timeout=0.1)

        mock_spawn.return_value.stop.assert_called_once_with(print_output=True)


class TestServiceEndpoint:
    def test_exit_with_error_prints_output(self):
        process = MagicMock()
        endpoint = ServiceEndpoint("svc", 1234, process)

        with pytest.raises(ValueError):
            with endpoint:
                raise ValueError("boom")

        process.stop.assert_called_once_with(print_output=True)

    def test_repr(self):
        endpoint = ServiceEndpoint("svc", 1234, object())

        assert repr(endpoint) == "ServiceEndpoint(name='svc', url='http://127.0.0.1:1234')"
