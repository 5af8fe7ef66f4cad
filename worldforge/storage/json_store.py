from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import os
import re

import orjson
from loguru import logger

from worldforge.domain.ids import new_id, utc_now
from worldforge.domain.models import World, WorldModel

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class WorldMetadata(WorldModel):
    id: str
    name: str = ""
    description: str = ""
    creation_date: datetime | None = None
    last_modified: datetime
    genre: str = ""
    theme: str = ""
    place_count: int = 0
    character_count: int = 0
    event_count: int = 0
    item_count: int = 0
    file_size_bytes: int = 0


def safe_world_filename(world_id: str) -> str:
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', world_id)}.json"


def _metadata_for(world: World, path: Path) -> WorldMetadata:
    stat = path.stat()
    return WorldMetadata(
        id=world.id,
        name=world.name,
        description=world.description,
        creation_date=world.creation_date,
        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        genre=world.world_info.genre,
        theme=world.world_info.active_themes[0] if world.world_info.active_themes else "",
        place_count=len(world.places),
        character_count=len(world.historic_figures),
        event_count=len(world.world_events),
        item_count=(
            len(world.equipment)
            + len(world.spell_books)
            + len(world.runes_of_power)
            + len(world.alchemy_recipes)
            + len(world.technical_specs)
        ),
        file_size_bytes=stat.st_size,
    )


class WorldStore:
    """One JSON document per world under a single directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, world_id: str) -> Path:
        return self.directory / safe_world_filename(world_id)

    def save(self, world: World) -> World:
        """Persist ``world``, filling in a missing id and creation date on the instance itself."""
        if not world.id.strip():
            world.id = new_id()
        if world.creation_date is None:
            world.creation_date = utc_now()

        path = self.path_for(world.id)
        temp_path = path.with_name(f"{path.name}.tmp")
        try:
            temp_path.write_bytes(orjson.dumps(world.to_json_dict(), option=orjson.OPT_INDENT_2))
            os.replace(temp_path, path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
        logger.bind(world_id=world.id, operation="save").info("Saved world {} to {}", world.name, path)
        return world

    def load_raw(self, world_id: str) -> bytes | None:
        path = self.path_for(world_id)
        if not path.exists():
            return None
        return path.read_bytes()

    def load(self, world_id: str) -> World | None:
        raw = self.load_raw(world_id)
        if raw is None:
            logger.bind(world_id=world_id, operation="load").info("World not found")
            return None
        return World.model_validate_json(raw)

    def exists(self, world_id: str) -> bool:
        return self.path_for(world_id).exists()

    def delete(self, world_id: str) -> bool:
        path = self.path_for(world_id)
        if not path.exists():
            return False
        path.unlink()
        logger.bind(world_id=world_id, operation="delete").info("Deleted world file {}", path)
        return True

    def list_worlds(self) -> list[WorldMetadata]:
        worlds: list[WorldMetadata] = []
        for path in self.directory.glob("*.json"):
            try:
                world = World.model_validate_json(path.read_bytes())
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable world file {}: {}", path, exc)
                continue
            worlds.append(_metadata_for(world, path))

        logger.info("Retrieved {} worlds from storage", len(worlds))
        return sorted(worlds, key=lambda item: item.last_modified, reverse=True)

    def copy(self, world_id: str, new_name: str | None = None) -> World | None:
        original = self.load(world_id)
        if original is None:
            return None

        duplicate = original.model_copy(deep=True)
        duplicate.id = new_id()
        duplicate.name = (new_name or "").strip() or f"{original.name} (Copy)"
        duplicate.creation_date = utc_now()
        return self.save(duplicate)
