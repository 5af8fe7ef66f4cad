"""Free-text enhancement of generated worlds."""

from worldforge.enhancement.service import EnhancementEngine, WorldEnhancementResult

__all__ = ["EnhancementEngine", "WorldEnhancementResult"]
