from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
from conftest import vendor_payload
from fastapi.testclient import TestClient

from fx_quote.client import cli
from fx_quote.client.writer import ResultWriter
from fx_quote.core.config import FetcherConfig, PersisterConfig
from fx_quote.main import app
from fx_quote.modules.rates.api import get_quote_service
from fx_quote.modules.rates.fetcher import LocalRateFetcher, UpstreamRateFetcher
from fx_quote.modules.rates.persister import RatePersister
from fx_quote.modules.rates.schemas import ExchangeRateResponse
from fx_quote.modules.rates.service import QuoteService


def test_writer_formats_label_and_bid(tmp_path):
    writer = ResultWriter(tmp_path / "cotacao.txt", label="Dólar")

    path = writer.write(ExchangeRateResponse(bid=Decimal("5.2534")))

    assert path.read_text(encoding="utf-8") == "Dólar: 5.2534\n"


def test_writer_overwrites_previous_result(tmp_path):
    target = tmp_path / "cotacao.txt"
    target.write_text("Dólar: 4.99\nstale line\n", encoding="utf-8")
    writer = ResultWriter(target, label="Dólar")

    writer.write(ExchangeRateResponse(bid=Decimal("5.25")))

    assert target.read_text(encoding="utf-8") == "Dólar: 5.25\n"


def test_writer_propagates_os_errors(tmp_path):
    writer = ResultWriter(tmp_path, label="Dólar")

    with pytest.raises(OSError):
        writer.write(ExchangeRateResponse(bid=Decimal("5.25")))


def _patch_fetcher(monkeypatch, client) -> None:
    monkeypatch.setattr(
        cli, "LocalRateFetcher", lambda config: LocalRateFetcher(config, client=client)
    )


def test_main_writes_rate_and_exits_zero(monkeypatch, mock_client, tmp_path):
    _patch_fetcher(monkeypatch, mock_client(body={"bid": "5.25"}))
    output = tmp_path / "cotacao.txt"

    code = cli.main(["--output", str(output)])

    assert code == 0
    assert output.read_text(encoding="utf-8") == "Dólar: 5.25\n"


def test_main_exits_nonzero_on_server_error(monkeypatch, mock_client, tmp_path, capsys):
    _patch_fetcher(monkeypatch, mock_client(status_code=500, body="timeout fetching exchange rate"))
    output = tmp_path / "cotacao.txt"

    code = cli.main(["--output", str(output)])

    assert code == 1
    assert "error fetching exchange rate" in capsys.readouterr().err
    assert not output.exists()


def test_main_exits_nonzero_when_server_is_down(closed_port_url, tmp_path, capsys):
    output = tmp_path / "cotacao.txt"

    code = cli.main(["--url", closed_port_url, "--output", str(output)])

    assert code == 1
    err = capsys.readouterr().err
    assert "error fetching exchange rate" in err
    assert "ConnectError" in err
    assert not output.exists()


def test_main_exits_nonzero_on_timeout(silent_server, tmp_path, capsys):
    output = tmp_path / "cotacao.txt"

    code = cli.main(["--url", silent_server, "--timeout-ms", "100", "--output", str(output)])

    assert code == 1
    assert "timeout fetching exchange rate" in capsys.readouterr().err


def test_main_exits_nonzero_when_output_cannot_be_written(monkeypatch, mock_client, tmp_path, capsys):
    _patch_fetcher(monkeypatch, mock_client(body={"bid": "5.25"}))

    code = cli.main(["--output", str(tmp_path)])

    assert code == 1
    assert "cannot write" in capsys.readouterr().err


def test_server_and_client_end_to_end(mock_client, tmp_path):
    service = QuoteService(
        UpstreamRateFetcher(
            FetcherConfig(url="https://vendor.test/json/last/USD-BRL", timeout_s=0.2),
            client=mock_client(body=vendor_payload("5.25")),
        ),
        RatePersister(PersisterConfig(timeout_s=0.25)),
    )
    app.dependency_overrides[get_quote_service] = lambda: service
    output = tmp_path / "cotacao.txt"
    try:
        # TestClient runs the lifespan; the fetcher talks to the app over ASGI.
        with TestClient(app):
            fetcher = LocalRateFetcher(
                FetcherConfig(url="http://testserver/cotacao", timeout_s=0.3),
                client=httpx.AsyncClient(transport=httpx.ASGITransport(app=app)),
            )
            cli.run(fetcher.config, ResultWriter(output, label="Dólar"), fetcher=fetcher)
    finally:
        app.dependency_overrides.pop(get_quote_service, None)

    assert output.read_text(encoding="utf-8") == "Dólar: 5.25\n"
