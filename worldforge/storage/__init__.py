"""File storage for generated worlds."""

from worldforge.storage.json_store import WorldMetadata, WorldStore

__all__ = ["WorldMetadata", "WorldStore"]
