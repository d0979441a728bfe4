"""Configuration management for the SmartUI SDK."""

from enum import Enum
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

# Load .env file at import time
load_dotenv()

DEFAULT_SERVER_ADDRESS = "http://localhost:49152"
DEFAULT_INSIGHTS_ENDPOINT = "https://stage-api.lambdatestinternal.com/insights/api/v3/queue"


class AddressPolicy(str, Enum):
    """What to do when no server address is configured."""

    DEFAULT_TO_LOCALHOST = "default-to-localhost"
    FAIL_IF_UNSET = "fail-if-unset"


class TrackerConfig(BaseModel):
    """Navigation tracker and capture retry configuration."""

    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = 1.0
    attempt_timeout: float = 30.0
    results_dir: Path = Path("test-results")
    track_hash_changes: bool = True
    url_debounce: float = 0.1


class UploadConfig(BaseModel):
    """Navigation upload configuration."""

    enabled: bool = False
    api_endpoint: str = DEFAULT_INSIGHTS_ENDPOINT
    username: str | None = None
    access_key: str | None = None
    timeout: float = 30.0
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = 1.0


class Config(BaseSettings):
    """Main configuration for the SmartUI SDK."""

    model_config = SettingsConfigDict(
        env_prefix="SMARTUI_",
        env_nested_delimiter="__",
    )

    # Server
    server_address: str | None = None
    address_policy: AddressPolicy = AddressPolicy.DEFAULT_TO_LOCALHOST
    timeout: float = 30.0

    # Behaviour
    raise_errors: bool = True
    interactive_mode: bool = False
    verbose: bool = False

    # Sub-configurations
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment variables take precedence over values read from YAML
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def resolve_server_address(config: Config) -> str:
    """Resolve the SmartUI server base URL according to the configured policy."""
    if config.server_address:
        return config.server_address.rstrip("/")

    if config.address_policy is AddressPolicy.FAIL_IF_UNSET:
        raise ConfigurationError(
            "SmartUI server address is not set. "
            "Set SMARTUI_SERVER_ADDRESS or server_address in smartui.yaml."
        )
    return DEFAULT_SERVER_ADDRESS


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file and environment variables."""
    config_data: dict = {}

    # Try to find config file
    if config_path is None:
        for name in ["smartui.yaml", "smartui.yml", ".smartui.yaml"]:
            if Path(name).exists():
                config_path = Path(name)
                break

    # Load from YAML if exists
    if config_path and config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if raw and "smartui" in raw:
                config_data = raw["smartui"]
            elif raw:
                config_data = raw

    # Environment variables override YAML
    return Config(**config_data)
