from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.granola.ai"


@dataclass(frozen=True, slots=True)
class ClientIdentity:
    """Version fields sent with every request so the API sees the desktop app."""

    app_version: str = "6.4.0"
    client_type: str = "electron"
    client_platform: str = "darwin"
    client_architecture: str = "arm64"
    electron_version: str = "33.4.5"
    chrome_version: str = "130.0.6723.191"
    node_version: str = "20.18.3"
    os_version: str = "15.3.1"
    os_build: str = "24D70"

    @property
    def user_agent(self) -> str:
        return (
            f"Granola/{self.app_version} Electron/{self.electron_version} "
            f"Chrome/{self.chrome_version} Node/{self.node_version} "
            f"(macOS {self.os_version} {self.os_build})"
        )

    @property
    def client_id(self) -> str:
        return f"granola-{self.client_type}-{self.app_version}"

    def headers(self) -> Dict[str, str]:
        return {
            "X-App-Version": self.app_version,
            "User-Agent": self.user_agent,
            "X-Client-Type": self.client_type,
            "X-Client-Platform": self.client_platform,
            "X-Client-Architecture": self.client_architecture,
            "X-Client-Id": self.client_id,
        }


@dataclass(frozen=True, slots=True)
class HttpOptions:
    timeout_ms: int = 5000
    retries: int = 3
    identity: ClientIdentity = field(default_factory=ClientIdentity)
    client_headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")


class Settings(BaseSettings):
    """Client configuration loaded from ``GRANOLA_*`` environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="GRANOLA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout_ms: int = Field(5000, gt=0)
    retries: int = Field(3, ge=0)

    app_version: str = "6.4.0"
    client_type: str = "electron"
    client_platform: str = "darwin"
    client_architecture: str = "arm64"
    electron_version: str = "33.4.5"
    chrome_version: str = "130.0.6723.191"
    node_version: str = "20.18.3"
    os_version: str = "15.3.1"
    os_build: str = "24D70"

    organization_config: Optional[Path] = None

    log_level: str = "INFO"

    def identity(self) -> ClientIdentity:
        return ClientIdentity(
            app_version=self.app_version,
            client_type=self.client_type,
            client_platform=self.client_platform,
            client_architecture=self.client_architecture,
            electron_version=self.electron_version,
            chrome_version=self.chrome_version,
            node_version=self.node_version,
            os_version=self.os_version,
            os_build=self.os_build,
        )

    def http_options(self) -> HttpOptions:
        return HttpOptions(
            timeout_ms=self.timeout_ms,
            retries=self.retries,
            identity=self.identity(),
        )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    logging.basicConfig(level=settings.log_level)
    return settings
