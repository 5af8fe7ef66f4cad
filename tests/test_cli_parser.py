from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from worldforge.cli import _build_overrides, _build_parser, _complete_payload, main
from worldforge.config.schema import AppConfigRoot
from worldforge.storage.json_store import WorldStore


def test_generate_defaults() -> None:
    parser = _build_parser()
    args = parser.parse_args(["generate", "--name", "Aeloria"])

    assert args.command == "generate"
    assert args.theme is None
    assert args.tech_level is None
    assert args.difficulty == "Medium"
    assert args.biome == []
    assert args.no_save is False


def test_generate_collects_repeated_preferences() -> None:
    parser = _build_parser()
    args = parser.parse_args(["generate", "--name", "A", "--biome", "Desert", "--biome", "Tundra", "--race", "Elves"])

    assert args.biome == ["Desert", "Tundra"]
    assert args.race == ["Elves"]


def test_enhance_rejects_unknown_content_type() -> None:
    parser = _build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["enhance", "--world-id", "w1", "--content-type", "weather"])


def test_data_dir_override_moves_world_storage() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--data-dir", "/tmp/wf", "list"])

    overrides = _build_overrides(args)

    assert overrides["app"]["data_dir"] == "/tmp/wf"
    assert overrides["storage"]["worlds_dir"] == str(Path("/tmp/wf") / "worlds")
    assert "web" not in overrides


def test_serve_builds_web_overrides() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve", "--host", "0.0.0.0", "--port", "8081"])

    overrides = _build_overrides(args)

    assert overrides == {"web": {"host": "0.0.0.0", "port": 8081}}


def test_complete_payload_merges_request_file(tmp_path: Path) -> None:
    request_file = tmp_path / "request.json"
    request_file.write_bytes(orjson.dumps({"cityCount": 2, "techLevel": 9}))
    parser = _build_parser()
    args = parser.parse_args(
        ["generate-complete", "--name", "Vast", "--magic-level", "3", "--scale", "Global", "--request", str(request_file)]
    )

    payload = _complete_payload(args, AppConfigRoot())

    assert payload["worldName"] == "Vast"
    assert payload["cityCount"] == 2
    assert payload["techLevel"] == 9
    assert payload["magicLevel"] == 3
    assert payload["worldScale"] == "Global"
    assert payload["theme"] == "Fantasy-SciFi"


def test_main_generates_stores_and_exports(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WORLDFORGE_DATA_DIR", raising=False)
    data_dir = tmp_path / "data"
    output_dir = tmp_path / "out"
    common = ["--data-dir", str(data_dir), "--output-dir", str(output_dir)]

    main([*common, "generate", "--name", "Clitopia", "--seed", "5"])

    store = WorldStore(data_dir / "worlds")
    stored = store.list_worlds()
    assert [item.name for item in stored] == ["Clitopia"]

    world_id = stored[0].id
    main([*common, "wiki", "--world-id", world_id])
    assert (output_dir / "wiki" / world_id / "index.html").exists()

    main([*common, "enhance", "--world-id", world_id, "--content-type", "characters", "--seed", "6"])
    assert len(store.load(world_id).historic_figures) == 12 + 5


def test_main_reports_missing_world(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WORLDFORGE_DATA_DIR", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        main(["--data-dir", str(tmp_path), "delete", "--world-id", "missing"])

    assert excinfo.value.code == 1
