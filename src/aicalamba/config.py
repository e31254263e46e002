from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from aicalamba.errors import ConfigurationError

DEFAULT_ADDR = "0.0.0.0:3000"
# apiflash needs at least this long for slow pages to settle
MIN_APIFLASH_DELAY_S = 10


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    return env.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    addr: str = DEFAULT_ADDR
    log_level: str = "INFO"
    max_body_bytes: int = 10_000_000

    llm_provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llava"
    llm_timeout_s: float = 120.0

    screenshot_provider: str = "apiflash"
    apiflash_key: str = ""
    apiflash_delay_s: int = MIN_APIFLASH_DELAY_S
    screenshot_timeout_s: float = 60.0
    browser_endpoint: str = ""
    browser_settle_s: float = 3.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            addr=_get(env, "ADDR") or DEFAULT_ADDR,
            log_level=_get(env, "LOG_LEVEL", "INFO").upper(),
            max_body_bytes=int(_get(env, "MAX_BODY_BYTES", "10000000")),
            llm_provider=_get(env, "LLM_PROVIDER", "openai").lower(),
            # OPENAI_KEY is the historical name, OPENAI_API_KEY the usual one
            openai_api_key=_get(env, "OPENAI_KEY") or _get(env, "OPENAI_API_KEY"),
            openai_model=_get(env, "OPENAI_MODEL", "gpt-4o"),
            openai_base_url=_get(env, "OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            ollama_base_url=_get(env, "OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/"),
            ollama_model=_get(env, "OLLAMA_MODEL", "llava"),
            llm_timeout_s=float(_get(env, "LLM_TIMEOUT_S", "120")),
            screenshot_provider=_get(env, "SCREENSHOT_PROVIDER", "apiflash").lower(),
            apiflash_key=_get(env, "APIFLASH_KEY"),
            apiflash_delay_s=max(
                int(_get(env, "APIFLASH_DELAY_S", str(MIN_APIFLASH_DELAY_S))),
                MIN_APIFLASH_DELAY_S,
            ),
            screenshot_timeout_s=float(_get(env, "SCREENSHOT_TIMEOUT_S", "60")),
            browser_endpoint=_get(env, "BROWSER_ENDPOINT"),
            browser_settle_s=float(_get(env, "BROWSER_SETTLE_S", "3")),
        )

    @property
    def bind_host(self) -> str:
        host, _, _ = self.addr.rpartition(":")
        return host or "0.0.0.0"

    @property
    def bind_port(self) -> int:
        _, _, port = self.addr.rpartition(":")
        return int(port)

    def validate(self) -> None:
        """Raise ConfigurationError if a selected integration lacks its settings."""
        problems = []

        if self.llm_provider == "openai" and not self.openai_api_key:
            problems.append("OPENAI_KEY (or OPENAI_API_KEY) is missing")
        elif self.llm_provider not in {"openai", "ollama", "mock"}:
            problems.append(f"unknown LLM_PROVIDER {self.llm_provider!r}")

        if self.screenshot_provider == "apiflash" and not self.apiflash_key:
            problems.append("APIFLASH_KEY is missing")
        elif self.screenshot_provider == "browser" and not self.browser_endpoint:
            problems.append("BROWSER_ENDPOINT is missing")
        elif self.screenshot_provider not in {"apiflash", "browser"}:
            problems.append(f"unknown SCREENSHOT_PROVIDER {self.screenshot_provider!r}")

        try:
            self.bind_port
        except ValueError:
            problems.append(f"ADDR {self.addr!r} has no valid port")

        if problems:
            raise ConfigurationError("; ".join(problems))


def load_settings() -> Settings:
    return Settings.from_env()
