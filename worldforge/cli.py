from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Any

import orjson
import uvicorn
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table

from worldforge.config import load_config
from worldforge.config.loader import masked_env_snapshot
from worldforge.config.schema import AppConfigRoot
from worldforge.domain.models import World
from worldforge.enhancement.service import EnhancementEngine
from worldforge.export.wiki import export_world_wiki
from worldforge.generation.assembler import ENHANCE_CATEGORIES, WorldAssembler
from worldforge.generation.errors import GenerationFailure
from worldforge.generation.parameters import GenerationParameters, split_complete_request
from worldforge.llm.client import TextGenerationClient
from worldforge.storage.json_store import WorldStore
from worldforge.utils.logging import SERVER_LOGGERS, bridge_stdlib_loggers, setup_logging
from worldforge.web.app import create_app

console = Console()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="worldforge")
    parser.add_argument("--config", type=Path, default=None, help="Path to custom config YAML")
    parser.add_argument("--profile", type=str, default=None, help="Config profile name")
    parser.add_argument("--output-dir", type=Path, default=None, help="Override output directory")
    parser.add_argument("--data-dir", type=Path, default=None, help="Override data directory")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("config", help="Validate and print effective config")

    generate_parser = subparsers.add_parser("generate", help="Generate a world and store it")
    generate_parser.add_argument("--name", type=str, required=True, help="World name")
    generate_parser.add_argument("--theme", type=str, default=None, help="World theme")
    generate_parser.add_argument("--tech-level", type=int, default=None, help="Technology level 0-10")
    generate_parser.add_argument("--magic-level", type=int, default=None, help="Magic level 0-10")
    generate_parser.add_argument("--world-size", type=int, default=None, help="Place count for a custom world")
    generate_parser.add_argument("--biome", action="append", default=[], help="Preferred biome (repeatable)")
    generate_parser.add_argument("--race", action="append", default=[], help="Preferred race (repeatable)")
    generate_parser.add_argument(
        "--difficulty",
        choices=["Easy", "Medium", "Hard"],
        default="Medium",
        help="Difficulty level for a custom world",
    )
    generate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    generate_parser.add_argument("--no-save", action="store_true", help="Print the summary without storing")

    complete_parser = subparsers.add_parser("generate-complete", help="Generate a large hierarchical world")
    complete_parser.add_argument("--name", type=str, required=True, help="World name")
    complete_parser.add_argument("--theme", type=str, default=None, help="World theme")
    complete_parser.add_argument("--tech-level", type=int, default=None, help="Technology level 0-10")
    complete_parser.add_argument("--magic-level", type=int, default=None, help="Magic level 0-10")
    complete_parser.add_argument(
        "--scale",
        choices=["Local", "Regional", "Continental", "Global", "Interplanetary"],
        default=None,
        help="World scale",
    )
    complete_parser.add_argument("--request", type=Path, default=None, help="JSON file with entity counts")
    complete_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    complete_parser.add_argument("--no-save", action="store_true", help="Print the summary without storing")

    subparsers.add_parser("list", help="List stored worlds")

    show_parser = subparsers.add_parser("show", help="Show a stored world")
    show_parser.add_argument("--world-id", type=str, required=True, help="World id")
    show_parser.add_argument("--json", action="store_true", help="Print the full world document")

    copy_parser = subparsers.add_parser("copy", help="Copy a stored world")
    copy_parser.add_argument("--world-id", type=str, required=True, help="World id")
    copy_parser.add_argument("--name", type=str, default=None, help="Name for the copy")

    delete_parser = subparsers.add_parser("delete", help="Delete a stored world")
    delete_parser.add_argument("--world-id", type=str, required=True, help="World id")

    enhance_parser = subparsers.add_parser("enhance", help="Add a batch of generated content to a stored world")
    enhance_parser.add_argument("--world-id", type=str, required=True, help="World id")
    enhance_parser.add_argument("--content-type", choices=list(ENHANCE_CATEGORIES), required=True)
    enhance_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    text_parser = subparsers.add_parser("enhance-text", help="Apply a free-text comment through the LLM")
    text_parser.add_argument("--world-id", type=str, required=True, help="World id")
    text_parser.add_argument("--comment", type=str, required=True, help="What to change")
    text_parser.add_argument("--section", type=str, default=None, help="Section to narrate afterwards")

    wiki_parser = subparsers.add_parser("wiki", help="Export a stored world as static HTML")
    wiki_parser.add_argument("--world-id", type=str, required=True, help="World id")

    subparsers.add_parser("health", help="Check the LLM server")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, default=None, help="Bind host")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")

    return parser


def _build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    app_overrides: dict[str, Any] = {}
    if args.output_dir:
        app_overrides["output_dir"] = str(args.output_dir)
    if args.data_dir:
        app_overrides["data_dir"] = str(args.data_dir)
        overrides["storage"] = {"worlds_dir": str(args.data_dir / "worlds")}
    if app_overrides:
        overrides["app"] = app_overrides

    web_overrides: dict[str, Any] = {}
    if getattr(args, "host", None):
        web_overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        web_overrides["port"] = args.port
    if web_overrides:
        overrides["web"] = web_overrides
    return overrides


def _print_config(config: AppConfigRoot) -> None:
    env_snapshot = masked_env_snapshot(config)
    console.print(Panel(Pretty(config.model_dump(mode="json")), title="Effective Config"))
    console.print(Panel(Pretty(env_snapshot), title="Env Snapshot"))


def _world_table(title: str, world: World, location: Path | None = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("World ID", world.id)
    table.add_row("Name", world.name)
    table.add_row("Genre", world.world_info.genre)
    table.add_row("Magic / Technology", f"{world.world_info.magic_level} / {world.world_info.technology_level}")
    table.add_row("Places", str(len(world.places)))
    table.add_row("Characters", str(len(world.historic_figures)))
    table.add_row("Events", str(len(world.world_events)))
    table.add_row("Equipment", str(len(world.equipment)))
    table.add_row("Spell books / Runes / Recipes", f"{len(world.spell_books)}/{len(world.runes_of_power)}/{len(world.alchemy_recipes)}")
    table.add_row("Technical specs", str(len(world.technical_specs)))
    if location is not None:
        table.add_row("Stored at", str(location))
    return table


def _load_world(store: WorldStore, world_id: str) -> World:
    world = store.load(world_id)
    if world is None:
        raise ValueError(f"World {world_id} not found")
    return world


def _complete_payload(args: argparse.Namespace, config: AppConfigRoot) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if args.request is not None:
        loaded = orjson.loads(Path(args.request).read_bytes())
        if not isinstance(loaded, dict):
            raise ValueError("Request file must hold a JSON object")
        payload.update(loaded)
    payload["worldName"] = args.name
    payload["theme"] = args.theme or payload.get("theme") or config.generation.default_theme
    payload["techLevel"] = args.tech_level if args.tech_level is not None else payload.get("techLevel", config.generation.default_tech_level)
    payload["magicLevel"] = args.magic_level if args.magic_level is not None else payload.get("magicLevel", config.generation.default_magic_level)
    if args.scale:
        payload["worldScale"] = args.scale
    return payload


async def _main_async(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    overrides = _build_overrides(args)
    config = load_config(
        config_path=args.config,
        profile=args.profile,
        overrides=overrides,
    )

    setup_logging(config.app.log_level)
    logger.info("Loaded configuration")

    if args.command == "config":
        _print_config(config)
        return

    defaults = config.generation
    assembler = WorldAssembler(enhance_batch_size=defaults.enhance_batch_size)
    store = WorldStore(config.storage.worlds_dir)

    if args.command == "generate":
        theme = args.theme or defaults.default_theme
        tech_level = defaults.default_tech_level if args.tech_level is None else args.tech_level
        magic_level = defaults.default_magic_level if args.magic_level is None else args.magic_level
        if args.world_size is None and not args.biome and not args.race:
            world = assembler.generate_world(args.name, theme, tech_level, magic_level, seed=args.seed)
        else:
            parameters = GenerationParameters(
                world_name=args.name,
                theme=theme,
                tech_level=tech_level,
                magic_level=magic_level,
                world_size=args.world_size or defaults.quick_world_size,
                preferred_biomes=args.biome,
                preferred_races=args.race,
                include_space_travel=tech_level >= 7,
                difficulty_level=args.difficulty,
            )
            world = assembler.generate_custom_world(parameters, seed=args.seed)
        location = None if args.no_save else store.path_for(store.save(world).id)
        console.print(_world_table("Generated World", world, location))
        return

    if args.command == "generate-complete":
        parameters, request = split_complete_request(_complete_payload(args, config))
        world = assembler.generate_complete_world(parameters, request, seed=args.seed)
        location = None if args.no_save else store.path_for(store.save(world).id)
        console.print(_world_table("Generated Complete World", world, location))
        return

    if args.command == "list":
        table = Table(title="Stored Worlds", show_header=True, header_style="bold")
        for column in ("ID", "Name", "Genre", "Places", "Characters", "Events", "Items", "Modified"):
            table.add_column(column)
        for item in store.list_worlds():
            table.add_row(
                item.id,
                item.name,
                item.genre,
                str(item.place_count),
                str(item.character_count),
                str(item.event_count),
                str(item.item_count),
                item.last_modified.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)
        return

    if args.command == "show":
        world = _load_world(store, args.world_id)
        if args.json:
            console.print_json(orjson.dumps(world.to_json_dict()).decode("utf-8"))
        else:
            console.print(Panel(world.description or "(no description)", title=world.name))
            console.print(_world_table("World", world, store.path_for(world.id)))
        return

    if args.command == "copy":
        duplicate = store.copy(args.world_id, args.name)
        if duplicate is None:
            raise ValueError(f"World {args.world_id} not found")
        console.print(_world_table("Copied World", duplicate, store.path_for(duplicate.id)))
        return

    if args.command == "delete":
        if not store.delete(args.world_id):
            raise ValueError(f"World {args.world_id} not found")
        console.print(Panel(f"Deleted world {args.world_id}", title="Delete"))
        return

    if args.command == "enhance":
        world = assembler.enhance_world(_load_world(store, args.world_id), args.content_type, seed=args.seed)
        store.save(world)
        console.print(_world_table(f"Enhanced World ({args.content_type})", world, store.path_for(world.id)))
        return

    if args.command == "enhance-text":
        engine = EnhancementEngine(TextGenerationClient(config), assembler)
        result = await engine.enhance(_load_world(store, args.world_id), args.comment, args.section)
        store.save(result.updated_world)
        console.print(Panel("\n".join(result.changes_applied) or "(no changes)", title="Changes Applied"))
        console.print(Panel(result.generated_narrative, title="Narrative"))
        return

    if args.command == "wiki":
        world = _load_world(store, args.world_id)
        export_result = export_world_wiki(world, config.app.output_dir / "wiki" / world.id)
        console.print(
            Panel(
                f"Exported {len(export_result.page_paths)} pages to {export_result.output_dir}",
                title="Wiki Export",
            )
        )
        return

    if args.command == "health":
        health = await TextGenerationClient(config).check_health()
        console.print(Panel(Pretty(health.model_dump(mode="json", by_alias=True)), title="LLM Health"))
        return

    if args.command == "serve":
        bridge_stdlib_loggers(SERVER_LOGGERS)
        app = create_app(config, store=store, assembler=assembler)
        # uvicorn's own dictConfig would replace the loguru bridge.
        server = uvicorn.Server(uvicorn.Config(app, host=config.web.host, port=config.web.port, log_config=None))
        logger.info("Serving on http://{}:{}", config.web.host, config.web.port)
        await server.serve()
        return


def main(argv: list[str] | None = None) -> None:
    try:
        asyncio.run(_main_async(argv))
    except (ValueError, GenerationFailure) as exc:
        console.print(Panel(str(exc), title="Error", style="red"))
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
