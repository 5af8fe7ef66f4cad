from __future__ import annotations

from pathlib import Path
import textwrap

import pytest
from pydantic import ValidationError

from worldforge.config.loader import load_config, masked_env_snapshot
from worldforge.config.schema import AppConfigRoot, GenerationConfig, LLMConfig, WebConfig, resolve_paths


def test_resolve_paths_makes_absolute(tmp_path: Path) -> None:
    config = AppConfigRoot()
    config.app.data_dir = Path("data")
    config.app.output_dir = Path("output")
    config.storage.worlds_dir = Path("data/worlds")

    resolved = resolve_paths(config, tmp_path)

    assert resolved.app.data_dir == (tmp_path / "data").resolve()
    assert resolved.app.output_dir == (tmp_path / "output").resolve()
    assert resolved.storage.worlds_dir == (tmp_path / "data/worlds").resolve()


def test_llm_config_validates_temperature_and_base_url() -> None:
    with pytest.raises(ValidationError):
        LLMConfig(temperature=2.5)

    with pytest.raises(ValidationError):
        LLMConfig(base_url="   ")

    assert LLMConfig(base_url="http://localhost:1234/").base_url == "http://localhost:1234"


def test_generation_config_rejects_out_of_range_levels() -> None:
    with pytest.raises(ValidationError):
        GenerationConfig(default_tech_level=11)

    with pytest.raises(ValidationError):
        GenerationConfig(enhance_batch_size=0)


def test_web_config_rejects_invalid_port() -> None:
    with pytest.raises(ValidationError):
        WebConfig(port=0)


def test_unknown_config_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfigRoot.model_validate({"llm": {"provider": "openai"}})


def test_load_config_merge_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    configs_dir = tmp_path / "configs"
    profiles_dir = configs_dir / "profiles"
    profiles_dir.mkdir(parents=True)

    (configs_dir / "default.yaml").write_text(
        textwrap.dedent(
            """
            app:
              data_dir: "./data-default"
              output_dir: "./out-default"
            llm:
              base_url: "http://default-llm:8080"
              model: "default-model"
            generation:
              default_magic_level: 4
            """
        ).strip(),
        encoding="utf-8",
    )

    (profiles_dir / "fast.yaml").write_text(
        textwrap.dedent(
            """
            app:
              output_dir: "./out-profile"
            llm:
              model: "profile-model"
            """
        ).strip(),
        encoding="utf-8",
    )

    (configs_dir / "custom.yaml").write_text(
        textwrap.dedent(
            """
            app:
              output_dir: "./out-custom"
            """
        ).strip(),
        encoding="utf-8",
    )

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WORLDFORGE_DATA_DIR", str(tmp_path / "env-data"))
    monkeypatch.setenv("WORLDFORGE_LLM_BASE_URL", "http://env-llm:9000")
    monkeypatch.delenv("WORLDFORGE_LLM_MODEL", raising=False)

    config = load_config(
        config_path=configs_dir / "custom.yaml",
        profile="fast",
        overrides={"app": {"output_dir": "./out-override"}},
    )

    assert config.app.data_dir == (tmp_path / "env-data").resolve()
    assert config.storage.worlds_dir == (tmp_path / "env-data" / "worlds").resolve()
    assert config.app.output_dir == (tmp_path / "out-override").resolve()
    assert config.llm.model == "profile-model"
    assert config.llm.base_url == "http://env-llm:9000"
    assert config.generation.default_magic_level == 4


def test_load_config_without_files_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("WORLDFORGE_DATA_DIR", "WORLDFORGE_LLM_BASE_URL", "WORLDFORGE_LLM_MODEL"):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.llm.base_url == "http://localhost:8080"
    assert config.generation.quick_world_size == 25
    assert config.storage.worlds_dir == (tmp_path / "data" / "worlds").resolve()


def test_masked_env_snapshot_hides_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORLDFORGE_LLM_API_KEY", "secret-value")
    snapshot = masked_env_snapshot(AppConfigRoot())

    assert snapshot["WORLDFORGE_LLM_API_KEY"] == "***"
    assert "secret-value" not in snapshot.values()


def test_observability_config_defaults_and_validation() -> None:
    config = AppConfigRoot()
    assert config.observability.log_json_error_payload is True
    assert config.observability.json_error_payload_max_chars == 0
    assert config.observability.log_retry_attempts is True

    with pytest.raises(ValidationError):
        AppConfigRoot.model_validate({"observability": {"json_error_payload_max_chars": -1}})


def test_unknown_profile_lists_available_ones(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    profiles_dir = tmp_path / "configs" / "profiles"
    profiles_dir.mkdir(parents=True)
    (profiles_dir / "openai.yaml").write_text("llm:\n  model: gpt\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ValueError, match=r"Unknown config profile 'missing' \(available: openai\)"):
        load_config(profile="missing")


def test_explicit_config_file_must_exist_and_be_a_mapping(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    listed = tmp_path / "list.yaml"
    listed.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="not found"):
        load_config(config_path=tmp_path / "absent.yaml")
    with pytest.raises(ValueError, match="mapping"):
        load_config(config_path=listed)


def test_dotenv_does_not_override_real_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text(
        'export WORLDFORGE_LLM_MODEL="dotenv-model"\nWORLDFORGE_LLM_BASE_URL=http://dotenv:1\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    # setenv first so teardown also removes the value loaded from .env
    monkeypatch.setenv("WORLDFORGE_LLM_MODEL", "unused")
    monkeypatch.delenv("WORLDFORGE_LLM_MODEL")
    monkeypatch.setenv("WORLDFORGE_LLM_BASE_URL", "http://real-env:2")

    config = load_config()

    assert config.llm.model == "dotenv-model"
    assert config.llm.base_url == "http://real-env:2"
