from __future__ import annotations

import json
import os
import socket
import threading
from collections.abc import Callable, Iterator

import anyio
import httpx
import pytest

# Set env before any fx_quote imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.fx_quote_test.db")
# Generous store deadline for the happy path; timeout tests pass their own config.
os.environ.setdefault("PERSIST_TIMEOUT_MS", "250")


@pytest.fixture(autouse=True)
def _reset_db() -> None:
    import fx_quote.models  # noqa: F401
    from fx_quote.core.db import engine
    from fx_quote.core.models import Base

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield


def vendor_payload(bid: str | None = "5.25") -> dict:
    quote = {
        "code": "USD",
        "codein": "BRL",
        "name": "Dólar Americano/Real Brasileiro",
        "high": "5.31",
        "low": "5.22",
        "varBid": "0.01",
        "pctChange": "0.19",
        "ask": "5.2510",
        "timestamp": "1729260000",
        "create_date": "2026-10-18 11:20:00",
    }
    if bid is not None:
        quote["bid"] = bid
    return {"USDBRL": quote}


@pytest.fixture
def mock_client() -> Iterator[Callable[..., httpx.AsyncClient]]:
    clients: list[httpx.AsyncClient] = []

    def _make(
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        *,
        status_code: int = 200,
        body: dict | str | bytes | None = None,
    ) -> httpx.AsyncClient:
        if handler is None:

            def handler(request: httpx.Request) -> httpx.Response:
                content = body if isinstance(body, (str, bytes)) else json.dumps(body)
                return httpx.Response(status_code, content=content)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        anyio.run(client.aclose)


@pytest.fixture
def silent_server() -> Iterator[str]:
    """A TCP listener that completes the handshake but never answers."""
    server = socket.create_server(("127.0.0.1", 0))
    server.listen(8)
    host, port = server.getsockname()
    try:
        yield f"http://{host}:{port}/json/last/USD-BRL"
    finally:
        server.close()


@pytest.fixture
def trickle_server() -> Iterator[str]:
    """Sends a status line, then one header byte every 30ms without ever finishing the headers."""
    server = socket.create_server(("127.0.0.1", 0))
    server.settimeout(2.0)
    stop = threading.Event()

    def _serve() -> None:
        try:
            conn, _ = server.accept()
        except OSError:
            return
        with conn:
            try:
                conn.sendall(b"HTTP/1.1 200 OK\r\n")
                header = b"X-Padding: " + b"a" * 64 + b"\r\n"
                while not stop.is_set():
                    for byte in header:
                        if stop.wait(0.03):
                            return
                        conn.sendall(bytes([byte]))
            except OSError:
                return

    thread = threading.Thread(target=_serve, daemon=True)
    thread.start()
    host, port = server.getsockname()
    try:
        yield f"http://{host}:{port}/json/last/USD-BRL"
    finally:
        stop.set()
        thread.join(timeout=3)
        server.close()


@pytest.fixture
def closed_port_url() -> str:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/cotacao"
