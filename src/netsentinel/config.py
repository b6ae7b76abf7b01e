"""Application configuration via environment variables and .env file."""

import re
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource

# Path to .env file (patch in tests to use tmp_path / ".env")
_ENV_FILE: Path = Path(".env")

_SUBNET_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "NETSENTINEL_",
        "env_file_encoding": "utf-8",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Load .env from _ENV_FILE (patchable in tests)
        return (
            init_settings,
            env_settings,
            DotEnvSettingsSource(
                settings_cls,
                env_file=_ENV_FILE,
                env_file_encoding="utf-8",
            ),
            file_secret_settings,
        )

    # Logging
    log_level: str = "info"

    # Simulation
    subnet: str = "192.168.1"  # first three octets
    tick_interval: float = 1.5  # seconds between ticks
    device_cap: int = 20
    discovery_probability: float = 0.1
    disconnect_probability: float = 0.05
    reconnect_probability: float = 0.1
    random_seed: int | None = None

    # Activity log
    log_capacity: int = 50

    # Analysis triggers
    auto_analyze: bool = False
    new_device_threshold: int = 3

    # Gemini
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_temperature: float = 0.4
    analysis_timeout: float = 60.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("subnet")
    @classmethod
    def validate_subnet(cls, v: str) -> str:
        """Accept "a.b.c" (or "a.b.c.0/24") with octets in range."""
        v = v.strip()
        if v.endswith(".0/24"):
            v = v[: -len(".0/24")]
        m = _SUBNET_RE.match(v)
        if not m or any(int(octet) > 255 for octet in m.groups()):
            raise ValueError(f"Invalid subnet prefix: {v!r}")
        return v

    @field_validator(
        "discovery_probability", "disconnect_probability", "reconnect_probability"
    )
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Probability must be between 0 and 1")
        return v

    @field_validator("tick_interval", "analysis_timeout")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Interval must be greater than 0 seconds")
        return v

    @field_validator("new_device_threshold", "log_capacity")
    @classmethod
    def validate_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Must be at least 1")
        return v

    @field_validator("device_cap")
    @classmethod
    def validate_device_cap(cls, v: int) -> int:
        # host and gateway are always present
        if v < 2:
            raise ValueError("Device cap must be at least 2")
        return v


def load_config() -> Settings:
    """Load configuration from .env and environment (env overrides .env)."""
    return Settings()


settings = Settings()
