import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key
from pydantic import BaseModel, ConfigDict, Field

from adapters import GoogleGenAIAdapter

LOGGER = logging.getLogger("market_suite")

GEMINI_BASE_URL_DEFAULT = "https://generativelanguage.googleapis.com"
API_KEY_ENV = "GEMINI_API_KEY"
API_KEY_FALLBACK_ENV = "API_KEY"
OUTPUT_DIR_ENV = "MARKET_SUITE_OUTPUT_DIR"


class ServiceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_key: str = ""
    base_url: str = GEMINI_BASE_URL_DEFAULT
    timeout_seconds: int = Field(default=120, gt=0)
    poll_interval_seconds: float = Field(default=5, ge=0)
    poll_max_attempts: int = Field(default=120, ge=0)
    output_dir: str = "downloads"

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key.strip())


def load_config_from_env(load_env_file: bool = True) -> ServiceConfig:
    if load_env_file:
        load_dotenv()
    api_key = os.getenv(API_KEY_ENV, "").strip() or os.getenv(API_KEY_FALLBACK_ENV, "").strip()
    return ServiceConfig(
        api_key=api_key,
        base_url=os.getenv("GEMINI_BASE_URL", "").strip() or GEMINI_BASE_URL_DEFAULT,
        timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "120")),
        poll_interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "5")),
        poll_max_attempts=int(os.getenv("POLL_MAX_ATTEMPTS", "120")),
        output_dir=os.getenv(OUTPUT_DIR_ENV, "").strip() or "downloads",
    )


def build_adapter(config: ServiceConfig) -> GoogleGenAIAdapter:
    return GoogleGenAIAdapter(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout_seconds=config.timeout_seconds,
    )


def save_api_key(api_key: str, env_path: Optional[Path] = None) -> Path:
    """Persist the key to the .env file and the running process environment."""
    value = api_key.strip()
    if not value:
        raise ValueError("api key must not be empty")
    path = env_path or Path.cwd() / ".env"
    if not path.exists():
        path.touch()
    set_key(str(path), API_KEY_ENV, value)
    os.environ[API_KEY_ENV] = value
    LOGGER.info("api key saved to %s", path)
    return path
