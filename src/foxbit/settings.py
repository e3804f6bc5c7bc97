from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ReconnectSettings(BaseModel):
    enabled: bool = True
    initial_delay: float = Field(default=1.0, gt=0)
    backoff_base: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=60.0, gt=0)
    max_attempts: int = Field(default=0, ge=0)

    model_config = {"extra": "forbid"}


class ConnectionSettings(BaseModel):
    url: str = "wss://api.foxbitapi.com.br/WSGateway/"
    request_timeout: float = Field(default=30.0, gt=0)
    heartbeat: float | None = Field(default=30.0, gt=0)
    resume_session: bool = True
    reconnect: ReconnectSettings = Field(default_factory=ReconnectSettings)

    model_config = {"extra": "forbid"}


class Credentials(BaseModel):
    username: str | None = None
    password: SecretStr | None = None
    two_fa_code: SecretStr | None = None

    model_config = {"extra": "forbid"}

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password)


class StreamSettings(BaseModel):
    """Feeds opened by ``foxbit stream``. Instruments are ids or symbols."""

    level1: list[int | str] = Field(default_factory=list)
    level2: list[int | str] = Field(default_factory=list)
    level2_depth: int = Field(default=300, gt=0)
    ticker: list[int] = Field(default_factory=list)
    ticker_interval: int = Field(default=60, gt=0)
    trades: list[int] = Field(default_factory=list)
    account_events: bool = False

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    oms_id: int = 1
    account_id: int | None = None
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    credentials: Credentials = Field(default_factory=Credentials)
    streams: StreamSettings = Field(default_factory=StreamSettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        creds = data.get("credentials")
        if isinstance(creds, dict):
            for key in ("password", "two_fa_code"):
                if creds.get(key) is not None:
                    creds[key] = "***"
        return data
