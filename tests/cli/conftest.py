"""Shared fixtures for CLI execution tests."""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Isolate commands from the developer's environment and ``.env`` file."""
    for key in ("HOST", "PORT", "READ_SIZE", "CONNECT_TIMEOUT", "OUTPUT_FORMAT"):
        monkeypatch.delenv(f"TRAMWATCH_{key}", raising=False)
    monkeypatch.setenv("TRAMWATCH_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)

    tramwatch_logger = logging.getLogger("tramwatch")
    level = tramwatch_logger.level
    yield
    tramwatch_logger.setLevel(level)


@pytest.fixture()
def capture_file(tmp_path: Path) -> Callable[[bytes], Path]:
    """Write raw feed bytes to a capture file and return its path."""

    def _write(data: bytes, name: str = "feed.bin") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture()
def publisher() -> Iterator[Callable[[bytes], int]]:
    """Serve bytes to a single TCP client from a background thread.

    Call with the payload; returns the bound port.  The connection is
    closed once the payload has been sent.
    """
    servers: list[socket.socket] = []
    threads: list[threading.Thread] = []

    def _serve(payload: bytes) -> int:
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        server.settimeout(5.0)

        def _run() -> None:
            try:
                conn, _addr = server.accept()
            except OSError:
                return
            with conn:
                conn.sendall(payload)

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        servers.append(server)
        threads.append(thread)
        return server.getsockname()[1]

    yield _serve

    for thread in threads:
        thread.join(timeout=5.0)
    for server in servers:
        server.close()


@pytest.fixture()
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
