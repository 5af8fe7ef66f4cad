from __future__ import annotations

import pytest

from worldforge.enhancement.json_utils import (
    ParsedInstructions,
    ParseIssue,
    fallback_instruction,
    first_json_object,
    parse_theme_list,
    parse_update_instructions,
    safe_load_json_dict,
)


def test_safe_load_json_dict_accepts_code_fence_and_trailing_commas() -> None:
    payload = safe_load_json_dict('```json\n{"genre": "Steampunk", "themes": ["a", "b",],}\n```')

    assert payload == {"genre": "Steampunk", "themes": ["a", "b"]}


def test_parse_update_instructions_from_fenced_reply() -> None:
    reply = '```json\n[{"action": "ADD", "target": "Places", "description": "A floating market", "properties": {}}]\n```'

    parsed = parse_update_instructions(reply)

    assert isinstance(parsed, ParsedInstructions)
    assert len(parsed.instructions) == 1
    instruction = parsed.instructions[0]
    assert instruction.action == "add"
    assert instruction.target == "places"
    assert instruction.change_entry() == "add places: A floating market"


def test_parse_update_instructions_from_embedded_array() -> None:
    reply = 'Sure! Here are the changes:\n[{"action": "modify", "target": "worldinfo", "description": "darker"}]\nEnjoy.'

    parsed = parse_update_instructions(reply)

    assert isinstance(parsed, ParsedInstructions)
    assert parsed.instructions[0].description == "darker"


def test_parse_update_instructions_without_array_is_an_issue() -> None:
    parsed = parse_update_instructions("I could not decide what to change.")

    assert isinstance(parsed, ParseIssue)
    assert parsed.raw_text == "I could not decide what to change."


def test_parse_update_instructions_with_malformed_array_is_an_issue() -> None:
    parsed = parse_update_instructions('[{"action": "add", "target": ]')

    assert isinstance(parsed, ParseIssue)
    assert "malformed" in parsed.reason


def test_parse_update_instructions_with_only_scalars_is_an_issue() -> None:
    parsed = parse_update_instructions("[1, 2, 3]")

    assert isinstance(parsed, ParseIssue)


def test_empty_array_means_no_instructions() -> None:
    parsed = parse_update_instructions("[]")

    assert isinstance(parsed, ParsedInstructions)
    assert parsed.instructions == []


def test_instruction_tolerates_missing_and_odd_fields() -> None:
    parsed = parse_update_instructions('[{"target": "Events", "description": null, "properties": "oops"}]')

    assert isinstance(parsed, ParsedInstructions)
    instruction = parsed.instructions[0]
    assert instruction.action == "modify"
    assert instruction.description == ""
    assert instruction.properties == {}


def test_fallback_instruction_targets_world_info() -> None:
    instruction = fallback_instruction("raw reply")

    assert instruction.action == "modify"
    assert instruction.target == "worldinfo"
    assert instruction.description == "raw reply"


def test_first_json_object_finds_embedded_object() -> None:
    assert first_json_object('Result: {"genre": "Noir"} done') == {"genre": "Noir"}

    with pytest.raises(ValueError):
        first_json_object("no braces here")


def test_parse_theme_list() -> None:
    assert parse_theme_list('["Dark", " ", "Gritty"]') == ["Dark", "Gritty"]

    with pytest.raises(ValueError):
        parse_theme_list("[]")


def test_parse_update_instructions_from_array_wrapped_in_object() -> None:
    reply = '{"instructions": [{"action": "add", "target": "places", "description": "a port"}]}'

    parsed = parse_update_instructions(reply)

    assert isinstance(parsed, ParsedInstructions)
    assert [item.target for item in parsed.instructions] == ["places"]
    assert parsed.instructions[0].description == "a port"


def test_parse_theme_list_from_array_wrapped_in_object() -> None:
    assert parse_theme_list('{"themes": ["Dark", "Hope"]}') == ["Dark", "Hope"]


def test_safe_load_json_dict_rejects_bare_array() -> None:
    with pytest.raises(ValueError):
        safe_load_json_dict("[1, 2]")
