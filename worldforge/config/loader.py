from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping
import os

import yaml
from loguru import logger

from worldforge.config.schema import AppConfigRoot, resolve_paths

DATA_DIR_ENV = "WORLDFORGE_DATA_DIR"
LLM_BASE_URL_ENV = "WORLDFORGE_LLM_BASE_URL"
LLM_MODEL_ENV = "WORLDFORGE_LLM_MODEL"

# env var -> (section, key); applied after every YAML layer and override.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    LLM_BASE_URL_ENV: ("llm", "base_url"),
    LLM_MODEL_ENV: ("llm", "model"),
}


def _configs_dir(base_dir: Path) -> Path:
    return base_dir / "configs"


def available_profiles(base_dir: Path | None = None) -> list[str]:
    profiles_dir = _configs_dir(base_dir or Path.cwd()) / "profiles"
    if not profiles_dir.is_dir():
        return []
    return sorted(path.stem for path in profiles_dir.glob("*.yaml"))


def _read_layer(path: Path, *, required: bool = False) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ValueError(f"Config file not found: {path}")
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return loaded


def _merged(base: Mapping[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    result = deepcopy(dict(base))
    for key, value in layer.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[key] = _merged(current, value)
        else:
            result[key] = deepcopy(value)
    return result


def _load_dotenv(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip().strip("\"'"))


def _env_layer() -> dict[str, Any]:
    layer: dict[str, Any] = {}
    data_dir = os.getenv(DATA_DIR_ENV)
    if data_dir:
        layer["app"] = {"data_dir": data_dir}
        # Stored worlds follow the data directory unless a later layer says otherwise.
        layer["storage"] = {"worlds_dir": str(Path(data_dir) / "worlds")}
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            layer.setdefault(section, {})[key] = value
    return layer


def load_config(
    config_path: Path | None = None,
    profile: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> AppConfigRoot:
    """Build the effective config.

    Layers, later ones winning: ``configs/default.yaml``, the named profile,
    ``config_path``, ``overrides``, then ``WORLDFORGE_*`` environment variables
    (a local ``.env`` is read first but never overrides the real environment).
    """
    base_dir = Path.cwd()
    _load_dotenv(base_dir / ".env")

    layers: list[tuple[str, dict[str, Any]]] = [("default", _read_layer(_configs_dir(base_dir) / "default.yaml"))]
    if profile:
        profile_path = _configs_dir(base_dir) / "profiles" / f"{profile}.yaml"
        if not profile_path.exists():
            known = ", ".join(available_profiles(base_dir)) or "none"
            raise ValueError(f"Unknown config profile '{profile}' (available: {known})")
        layers.append((f"profile:{profile}", _read_layer(profile_path)))
    if config_path:
        layers.append((str(config_path), _read_layer(Path(config_path), required=True)))
    if overrides:
        layers.append(("overrides", overrides))
    layers.append(("env", _env_layer()))

    config_data: dict[str, Any] = {}
    for _, layer in layers:
        config_data = _merged(config_data, layer)

    config = resolve_paths(AppConfigRoot.model_validate(config_data), base_dir)
    logger.debug("Loaded config from {} layers={}", base_dir, [name for name, layer in layers if layer])
    return config


def masked_env_snapshot(config: AppConfigRoot | None = None) -> dict[str, str | None]:
    snapshot: dict[str, str | None] = {name: os.getenv(name) for name in (DATA_DIR_ENV, *ENV_OVERRIDES)}
    if config is None:
        return snapshot

    snapshot["llm.base_url"] = config.llm.base_url
    snapshot["llm.model"] = config.llm.model
    if config.llm.api_key_env:
        snapshot[config.llm.api_key_env] = "***" if os.getenv(config.llm.api_key_env) else None
    return snapshot
