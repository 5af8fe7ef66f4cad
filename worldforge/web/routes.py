from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from fastapi import APIRouter, Body, HTTPException, Request
from fastapi.responses import HTMLResponse
from loguru import logger
from pydantic import Field

from worldforge.config.schema import AppConfigRoot
from worldforge.domain.models import World, WorldModel
from worldforge.enhancement.service import EnhancementEngine, WorldEnhancementResult
from worldforge.export.wiki import build_export_package, render_entity_page, render_not_found_page, render_world_page
from worldforge.generation import tables
from worldforge.generation.assembler import WorldAssembler
from worldforge.generation.parameters import DEFAULT_THEME, GenerationParameters, split_complete_request
from worldforge.llm.client import TextGenerationClient
from worldforge.storage.json_store import WorldStore

router = APIRouter()


@dataclass
class WebServices:
    config: AppConfigRoot
    assembler: WorldAssembler
    client: TextGenerationClient
    engine: EnhancementEngine
    store: WorldStore


def _services(request: Request) -> WebServices:
    return request.app.state.services


def _world_payload(world: World) -> dict[str, Any]:
    return world.to_json_dict()


def _result_payload(result: WorldEnhancementResult) -> dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True)


def _load_or_404(services: WebServices, world_id: str) -> World:
    world = services.store.load(world_id)
    if world is None:
        raise HTTPException(status_code=404, detail=f"World {world_id} not found")
    return world


# Request bodies


class WorldGenerationRequest(WorldModel):
    world_name: str = ""
    theme: str = DEFAULT_THEME
    tech_level: int = 5
    magic_level: int = 7


class CopyWorldRequest(WorldModel):
    new_name: str | None = None


class WorldEnhancementRequest(WorldModel):
    world: World
    user_comment: str = ""
    target_section: str | None = None


class RegenerateRequest(WorldModel):
    world: World
    section_type: str = ""
    section_id: str = ""
    user_comment: str = ""


class AddContentRequest(WorldModel):
    world: World
    content_type: str = ""
    description: str = ""


class UpdatePropertiesRequest(WorldModel):
    world: World
    user_comment: str = ""


class NarrativeRequest(WorldModel):
    world: World


class CreateAndEnhanceRequest(WorldModel):
    world_name: str = ""
    theme: str | None = None
    tech_level: int | None = None
    magic_level: int | None = None
    user_comment: str | None = None
    target_section: str | None = None


class GenerateTextRequest(WorldModel):
    json_data: Any = Field(default_factory=dict)
    prompt: str = ""


class UpdateLLMConfigRequest(WorldModel):
    base_url: str = ""
    model: str | None = None


def _require(value: str | None, message: str) -> str:
    if not (value or "").strip():
        raise ValueError(message)
    return (value or "").strip()


# Service


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


# Generation


@router.get("/api/world/themes")
def list_themes() -> list[dict[str, str]]:
    return tables.list_world_themes()


@router.get("/api/world/templates")
def list_templates() -> list[dict[str, object]]:
    return tables.list_world_templates()


@router.post("/api/world/generate")
def generate_world(request: Request, body: WorldGenerationRequest) -> dict[str, Any]:
    services = _services(request)
    world = services.assembler.generate_world(body.world_name, body.theme, body.tech_level, body.magic_level)
    return _world_payload(world)


@router.post("/api/world/generate-custom")
def generate_custom_world(request: Request, body: dict[str, Any] = Body(...)) -> dict[str, Any]:
    parameters = GenerationParameters.model_validate(body)
    world = _services(request).assembler.generate_custom_world(parameters)
    return _world_payload(world)


@router.post("/api/world/generate-complete")
def generate_complete_world(request: Request, body: dict[str, Any] = Body(...)) -> dict[str, Any]:
    parameters, complete_request = split_complete_request(body)
    world = _services(request).assembler.generate_complete_world(parameters, complete_request)
    return _world_payload(world)


# Stored worlds


@router.get("/api/worlds")
def list_worlds(request: Request) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json", by_alias=True) for item in _services(request).store.list_worlds()]


@router.get("/api/worlds/{world_id}")
def get_world(request: Request, world_id: str) -> dict[str, Any]:
    return _world_payload(_load_or_404(_services(request), world_id))


@router.post("/api/worlds")
def save_world(request: Request, world: World) -> dict[str, Any]:
    return _world_payload(_services(request).store.save(world))


@router.delete("/api/worlds/{world_id}")
def delete_world(request: Request, world_id: str) -> dict[str, Any]:
    if not _services(request).store.delete(world_id):
        raise HTTPException(status_code=404, detail=f"World {world_id} not found")
    return {"deleted": True, "id": world_id}


@router.post("/api/worlds/{world_id}/copy")
def copy_world(request: Request, world_id: str, body: CopyWorldRequest | None = None) -> dict[str, Any]:
    duplicate = _services(request).store.copy(world_id, body.new_name if body else None)
    if duplicate is None:
        raise HTTPException(status_code=404, detail=f"World {world_id} not found")
    return _world_payload(duplicate)


@router.post("/api/worlds/{world_id}/enhance/{content_type}")
def enhance_stored_world(request: Request, world_id: str, content_type: str) -> dict[str, Any]:
    services = _services(request)
    world = _load_or_404(services, world_id)
    enhanced = services.assembler.enhance_world(world, content_type)
    return _world_payload(services.store.save(enhanced))


@router.get("/api/worlds/{world_id}/export")
async def export_world(request: Request, world_id: str) -> dict[str, Any]:
    services = _services(request)
    world = await asyncio.to_thread(_load_or_404, services, world_id)
    narrative = await services.engine.generate_world_narrative(world)
    return build_export_package(world, narrative)


# Wiki


@router.get("/wiki/{world_id}", response_class=HTMLResponse)
def world_wiki(request: Request, world_id: str) -> HTMLResponse:
    world = _services(request).store.load(world_id)
    if world is None:
        return HTMLResponse(render_not_found_page("world", world_id), status_code=404)
    return HTMLResponse(render_world_page(world))


@router.get("/wiki/{world_id}/{kind}/{entity_id}", response_class=HTMLResponse)
def entity_wiki(request: Request, world_id: str, kind: str, entity_id: str) -> HTMLResponse:
    world = _services(request).store.load(world_id)
    if world is None:
        return HTMLResponse(render_not_found_page("world", world_id), status_code=404)
    html = render_entity_page(world, kind, entity_id)
    if html is None:
        return HTMLResponse(render_not_found_page(kind, entity_id, world), status_code=404)
    return HTMLResponse(html)


# Enhancement


@router.post("/api/enhancement/enhance")
async def enhance(request: Request, body: WorldEnhancementRequest) -> dict[str, Any]:
    comment = _require(body.user_comment, "User comment is required")
    result = await _services(request).engine.enhance(body.world, comment, body.target_section)
    return _result_payload(result)


@router.post("/api/enhancement/regenerate-section")
async def regenerate_section(request: Request, body: RegenerateRequest) -> dict[str, Any]:
    if not body.section_type.strip() or not body.section_id.strip():
        raise ValueError("Section type and ID are required")
    result = await _services(request).engine.regenerate_section(
        body.world, body.section_type, body.section_id, body.user_comment
    )
    return _result_payload(result)


@router.post("/api/enhancement/add-content")
async def add_content(request: Request, body: AddContentRequest) -> dict[str, Any]:
    content_type = _require(body.content_type, "Content type is required")
    result = await _services(request).engine.add_content(body.world, content_type, body.description)
    return _result_payload(result)


@router.post("/api/enhancement/update-properties")
async def update_properties(request: Request, body: UpdatePropertiesRequest) -> dict[str, Any]:
    comment = _require(body.user_comment, "User comment is required")
    return _world_payload(await _services(request).engine.update_properties(body.world, comment))


@router.post("/api/enhancement/narrative")
async def world_narrative(request: Request, body: NarrativeRequest) -> dict[str, str]:
    return {"narrative": await _services(request).engine.generate_world_narrative(body.world)}


@router.post("/api/enhancement/create-and-enhance")
async def create_and_enhance(request: Request, body: CreateAndEnhanceRequest) -> dict[str, Any]:
    services = _services(request)
    name = _require(body.world_name, "World name is required")
    defaults = services.config.generation
    world = services.assembler.generate_world(
        name,
        body.theme or defaults.default_theme,
        defaults.default_tech_level if body.tech_level is None else body.tech_level,
        defaults.default_magic_level if body.magic_level is None else body.magic_level,
    )

    comment = (body.user_comment or "").strip()
    if comment:
        result = await services.engine.enhance(world, comment, body.target_section)
    else:
        result = WorldEnhancementResult(
            updated_world=world,
            generated_narrative=await services.engine.generate_world_narrative(world),
            changes_applied=["Generated initial world"],
            user_comment="Initial world generation",
        )
    return _result_payload(result)


# Text generation


@router.post("/api/text/generate-from-json")
async def generate_from_json(request: Request, body: GenerateTextRequest) -> dict[str, str]:
    text = await _services(request).client.generate_text_from_json(body.json_data, body.prompt)
    return {"generatedText": text}


@router.post("/api/text/generate-world-narrative")
async def text_world_narrative(request: Request, body: dict[str, Any] = Body(...)) -> dict[str, str]:
    return {"narrative": await _services(request).client.generate_world_narrative(body)}


@router.post("/api/text/generate-character-description")
async def text_character_description(request: Request, body: dict[str, Any] = Body(...)) -> dict[str, str]:
    return {"description": await _services(request).client.generate_character_description(body)}


@router.post("/api/text/generate-location-description")
async def text_location_description(request: Request, body: dict[str, Any] = Body(...)) -> dict[str, str]:
    return {"description": await _services(request).client.generate_location_description(body)}


@router.post("/api/text/generate-event-narrative")
async def text_event_narrative(request: Request, body: dict[str, Any] = Body(...)) -> dict[str, str]:
    return {"narrative": await _services(request).client.generate_event_narrative(body)}


@router.get("/api/text/available")
async def text_available(request: Request) -> dict[str, bool]:
    health = await _services(request).client.check_health()
    return {"isAvailable": health.available}


# LLM configuration


@router.get("/api/configuration/llm")
def get_llm_configuration(request: Request) -> dict[str, str]:
    settings = _services(request).client.settings
    return {"baseUrl": settings.base_url, "model": settings.model}


@router.post("/api/configuration/llm")
def update_llm_configuration(request: Request, body: UpdateLLMConfigRequest) -> dict[str, Any]:
    base_url = _require(body.base_url, "Base URL is required")
    try:
        parsed = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise ValueError("Invalid URL format") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError("Invalid URL format")

    settings = _services(request).client.update_configuration(base_url, body.model)
    logger.bind(operation="configure").info("LLM endpoint set to {}", settings.base_url)
    return {
        "message": "LLM configuration updated successfully",
        "config": {"baseUrl": settings.base_url, "model": settings.model},
    }


@router.get("/api/configuration/llm/health")
async def llm_health(request: Request) -> dict[str, Any]:
    health = await _services(request).client.check_health()
    return health.model_dump(mode="json", by_alias=True)
