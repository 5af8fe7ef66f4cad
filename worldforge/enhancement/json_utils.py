from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union
import re

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        lines = stripped.splitlines()
        if len(lines) >= 2:
            return "\n".join(lines[1:-1]).strip()
    return stripped


def _sanitize_json_text(text: str) -> str:
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", cleaned)
    cleaned = re.sub(r",\s*([}\]])", r"\1", cleaned)
    return cleaned


def _load_bracketed(text: str, opening: str, closing: str) -> Any:
    if not text or not text.strip():
        raise ValueError("Empty JSON text")

    expected = dict if opening == "{" else list
    candidate = _sanitize_json_text(_strip_code_fence(text))
    try:
        payload = orjson.loads(candidate)
    except orjson.JSONDecodeError:
        payload = None
    if isinstance(payload, expected):
        return payload

    # Prose around the block, or the wrong container such as {"themes": [...]}.
    start = candidate.find(opening)
    end = candidate.rfind(closing)
    if start == -1 or end == -1 or end <= start:
        raise ValueError(f"No {opening}...{closing} block found")
    return orjson.loads(candidate[start : end + 1])


def safe_load_json_dict(text: str) -> dict[str, Any]:
    payload = _load_bracketed(text, "{", "}")
    if not isinstance(payload, dict):
        raise ValueError("Expected JSON object")
    return payload


def safe_load_json_list(text: str) -> list[Any]:
    payload = _load_bracketed(text, "[", "]")
    if not isinstance(payload, list):
        raise ValueError("Expected JSON array")
    return payload


def first_json_object(text: str) -> dict[str, Any]:
    """Decode the first ``{...}`` block of a free-text reply."""
    start = (text or "").find("{")
    end = (text or "").rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object found")
    return safe_load_json_dict(text[start : end + 1])


class WorldUpdateInstruction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str = "modify"
    target: str = "worldinfo"
    description: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("action", "target", mode="before")
    @classmethod
    def _normalize_keyword(cls, value: Any) -> str:
        return str(value or "").strip().lower()

    @field_validator("description", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("properties", mode="before")
    @classmethod
    def _properties_dict(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    def change_entry(self) -> str:
        return f"{self.action} {self.target}: {self.description}"


@dataclass(frozen=True)
class ParsedInstructions:
    instructions: list[WorldUpdateInstruction]


@dataclass(frozen=True)
class ParseIssue:
    reason: str
    raw_text: str


InstructionParseResult = Union[ParsedInstructions, ParseIssue]


def parse_update_instructions(text: str) -> InstructionParseResult:
    """Read an analysis reply as a list of instructions; never raises."""
    raw = text or ""
    if "[" not in raw or "]" not in raw:
        return ParseIssue(reason="no JSON array in reply", raw_text=raw)
    try:
        payload = safe_load_json_list(raw)
    except ValueError as exc:
        return ParseIssue(reason=f"malformed JSON array: {exc}", raw_text=raw)

    instructions = [WorldUpdateInstruction.model_validate(item) for item in payload if isinstance(item, dict)]
    if payload and not instructions:
        return ParseIssue(reason="JSON array holds no instruction objects", raw_text=raw)
    return ParsedInstructions(instructions=instructions)


def fallback_instruction(raw_text: str) -> WorldUpdateInstruction:
    return WorldUpdateInstruction(action="modify", target="worldinfo", description=raw_text)


def parse_theme_list(text: str) -> list[str]:
    payload = safe_load_json_list(text)
    themes = [str(item).strip() for item in payload if str(item).strip()]
    if not themes:
        raise ValueError("Theme list is empty")
    return themes
