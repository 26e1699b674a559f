from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"

    database_url: str = "sqlite:///./fx_quote.db"

    upstream_url: str = "https://economia.awesomeapi.com.br/json/last/USD-BRL"
    upstream_timeout_ms: int = 200
    persist_timeout_ms: int = 10

    server_host: str = "0.0.0.0"
    server_port: int = 8080

    quote_url: str = "http://localhost:8080/cotacao"
    client_timeout_ms: int = 300
    output_path: Path = Path("cotacao.txt")
    output_label: str = "Dólar"


settings = Settings()


@dataclass(frozen=True)
class FetcherConfig:
    url: str
    timeout_s: float

    @classmethod
    def upstream(cls, source: Settings | None = None) -> FetcherConfig:
        source = source or settings
        return cls(url=source.upstream_url, timeout_s=source.upstream_timeout_ms / 1000)

    @classmethod
    def local(cls, source: Settings | None = None) -> FetcherConfig:
        source = source or settings
        return cls(url=source.quote_url, timeout_s=source.client_timeout_ms / 1000)


@dataclass(frozen=True)
class PersisterConfig:
    timeout_s: float

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> PersisterConfig:
        source = source or settings
        return cls(timeout_s=source.persist_timeout_ms / 1000)
