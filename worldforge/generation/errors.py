from __future__ import annotations


class GenerationFailure(RuntimeError):
    """Unexpected fault while assembling a world; no partial world is returned."""

    def __init__(self, operation: str, world_name: str) -> None:
        super().__init__(f"World generation failed during {operation} for '{world_name}'")
        self.operation = operation
        self.world_name = world_name
