from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from worldforge.config.schema import AppConfigRoot
from worldforge.enhancement.service import EnhancementEngine
from worldforge.generation.assembler import WorldAssembler
from worldforge.generation.errors import GenerationFailure
from worldforge.llm.client import TextGenerationClient
from worldforge.storage.json_store import WorldStore
from worldforge.web.routes import WebServices, router


def create_app(
    config: AppConfigRoot,
    *,
    client: TextGenerationClient | None = None,
    store: WorldStore | None = None,
    assembler: WorldAssembler | None = None,
) -> FastAPI:
    """Wire the generator, enhancement engine and world store behind one FastAPI app."""
    assembler = assembler or WorldAssembler(enhance_batch_size=config.generation.enhance_batch_size)
    client = client or TextGenerationClient(config)
    store = store or WorldStore(config.storage.worlds_dir)

    app = FastAPI(
        title="Worldforge",
        description="Procedural fantasy and science-fiction world generator",
    )
    app.state.services = WebServices(
        config=config,
        assembler=assembler,
        client=client,
        engine=EnhancementEngine(client, assembler),
        store=store,
    )
    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(ValueError)
    async def _value_error(request: Request, exc: ValueError) -> PlainTextResponse:
        logger.bind(operation=request.url.path).warning("Rejected request: {}", exc)
        return PlainTextResponse(str(exc), status_code=400)

    @app.exception_handler(GenerationFailure)
    async def _generation_failure(request: Request, exc: GenerationFailure) -> PlainTextResponse:
        logger.bind(operation=exc.operation).error("Generation failed for {}: {}", exc.world_name, exc)
        return PlainTextResponse("An error occurred while generating the world", status_code=500)

    return app
