import argparse
import json
from pathlib import Path

from . import __version__
from .config import Settings, load_env, load_resolver_definitions
from .database import Registry
from .exceptions import AutocompleteError, PersistenceError
from .logger import get_logger
from .manager import build_manager

logger = get_logger()


def _load(args: argparse.Namespace, settings: Settings):
    definitions = load_resolver_definitions(Path(args.config), settings.database_url)
    registry = Registry(definitions["connections"], default_connection=args.connection)
    manager = build_manager(definitions["resolvers"], registry, settings.suggestions_limit)
    return registry, manager


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> None:
    registry, manager = _load(args, settings)
    try:
        registry.create_all()
    finally:
        registry.dispose()
    print(f"Initialized {len(registry.connection_names)} connection(s) for {len(manager.keys())} resolver(s)")


def cmd_suggest(args: argparse.Namespace, settings: Settings) -> None:
    registry, manager = _load(args, settings)
    try:
        suggestions = manager.get_suggestions(args.resolver, args.term, limit=args.limit)
    finally:
        registry.dispose()
    print(json.dumps(suggestions, default=str, ensure_ascii=False, indent=2 if args.pretty else None))


def cmd_list_resolvers(args: argparse.Namespace, settings: Settings) -> None:
    definitions = load_resolver_definitions(Path(args.config))
    resolvers = definitions["resolvers"]
    if not resolvers:
        print("No resolvers configured.")
        return
    print(f"Found {len(resolvers)} resolvers in {args.config}:\n")
    for key, definition in sorted(resolvers.items()):
        print(f"Key: {key}")
        print(f"  Entity: {definition['entity_class']}")
        print(f"  Id path: {definition['id_path']}")
        print(f"  Label path: {definition['label_path']}")
        fetcher = definition.get("suggestions_fetcher")
        print(f"  Fetcher: {getattr(fetcher, '__qualname__', fetcher) or 'default query'}")
        print(f"  Limit: {definition.get('limit') or settings.suggestions_limit}")
        print()


def main(argv=None):
    # Load .env if present (AUTOCOMPLETE_DATABASE_URL, AUTOCOMPLETE_LOG_LEVEL, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="formautocomplete", description="Entity autocomplete suggestions")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--log-level", help="Override AUTOCOMPLETE_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)")

    subparsers = parser.add_subparsers(dest="command")
    init = subparsers.add_parser("init-db", help="Create tables for the configured entities")
    init.add_argument("--config", required=True, help="Path to resolver definitions JSON")
    init.add_argument("--connection", default="default", help="Default connection name (default: default)")
    init.set_defaults(func=cmd_init_db)

    sug = subparsers.add_parser("suggest", help="Print suggestions for a term as JSON")
    sug.add_argument("--config", required=True, help="Path to resolver definitions JSON")
    sug.add_argument("--resolver", required=True, help="Resolver key from the configuration")
    sug.add_argument("--term", default="", help="Partial search term (default: empty, matches everything)")
    sug.add_argument("--limit", type=int, help="Override the resolver's suggestions limit")
    sug.add_argument("--connection", default="default", help="Default connection name (default: default)")
    sug.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    sug.set_defaults(func=cmd_suggest)

    lst = subparsers.add_parser("list-resolvers", help="List the configured resolvers")
    lst.add_argument("--config", required=True, help="Path to resolver definitions JSON")
    lst.set_defaults(func=cmd_list_resolvers)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    try:
        settings = Settings.from_env()
    except AutocompleteError as e:
        raise SystemExit(str(e))
    logger.configure(
        level=args.log_level or settings.log_level,
        log_dir=settings.log_dir,
        enable_file=settings.log_dir is not None,
    )

    if hasattr(args, "func"):
        try:
            args.func(args, settings)
        except (AutocompleteError, PersistenceError) as e:
            raise SystemExit(f"Error: {e}")
        return

    parser.print_help()


if __name__ == "__main__":
    main()
