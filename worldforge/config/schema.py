from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data_dir: Path = Field(default=Path("./data"))
    output_dir: Path = Field(default=Path("./output"))
    log_level: str = Field(default="INFO")


class GenerationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_theme: str = "Fantasy-SciFi"
    default_tech_level: int = 5
    default_magic_level: int = 7
    quick_world_size: int = 25
    enhance_batch_size: int = 5

    @field_validator("default_tech_level", "default_magic_level")
    @classmethod
    def _level_range(cls, value: int) -> int:
        if not 0 <= value <= 10:
            raise ValueError("default levels must be between 0 and 10")
        return value

    @field_validator("quick_world_size", "enhance_batch_size")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("generation sizes must be positive")
        return value


class LLMConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str = "http://localhost:8080"
    model: str = "local-model"
    api_key_env: str | None = "WORLDFORGE_LLM_API_KEY"
    temperature: float = 0.8
    max_tokens: int | None = 1000
    timeout_s: int = 60
    health_timeout_s: int = 10
    max_concurrency: int = 4
    retries: int = 0

    @field_validator("base_url")
    @classmethod
    def _non_empty_base_url(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("llm.base_url must not be empty")
        return stripped

    @field_validator("temperature")
    @classmethod
    def _temperature_range(cls, value: float) -> float:
        if not 0 <= value <= 2:
            raise ValueError("temperature must be between 0 and 2")
        return value

    @field_validator("timeout_s", "health_timeout_s", "max_concurrency", "retries")
    @classmethod
    def _non_negative_int(cls, value: int) -> int:
        if value < 0:
            raise ValueError("llm integer settings must be non-negative")
        return value

    @field_validator("max_tokens")
    @classmethod
    def _positive_optional_max_tokens(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("max_tokens must be positive when provided")
        return value


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    worlds_dir: Path = Field(default=Path("./data/worlds"))


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    port: int = 5000

    @field_validator("port")
    @classmethod
    def _port_range(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("web.port must be between 1 and 65535")
        return value


class ObservabilityConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    log_json_error_payload: bool = True
    json_error_payload_max_chars: int = 0
    log_retry_attempts: bool = True

    @field_validator("json_error_payload_max_chars")
    @classmethod
    def _non_negative_chars(cls, value: int) -> int:
        if value < 0:
            raise ValueError("json_error_payload_max_chars must be non-negative")
        return value


class AppConfigRoot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    app: AppConfig = AppConfig()
    generation: GenerationConfig = GenerationConfig()
    llm: LLMConfig = LLMConfig()
    storage: StorageConfig = StorageConfig()
    web: WebConfig = WebConfig()
    observability: ObservabilityConfig = ObservabilityConfig()


def resolve_paths(config: AppConfigRoot, base_dir: Path) -> AppConfigRoot:
    def _resolve(path_value: Path) -> Path:
        return path_value if path_value.is_absolute() else (base_dir / path_value).resolve()

    config.app.data_dir = _resolve(config.app.data_dir)
    config.app.output_dir = _resolve(config.app.output_dir)
    config.storage.worlds_dir = _resolve(config.storage.worlds_dir)
    return config
