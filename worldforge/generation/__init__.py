"""Procedural world generation."""

from worldforge.generation.assembler import WorldAssembler
from worldforge.generation.errors import GenerationFailure
from worldforge.generation.parameters import CompleteWorldRequest, GenerationParameters
from worldforge.generation.random_source import RandomProvider

__all__ = ["CompleteWorldRequest", "GenerationFailure", "GenerationParameters", "RandomProvider", "WorldAssembler"]
