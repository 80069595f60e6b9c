"""
Configuration: environment settings and JSON resolver definitions.

A resolver definitions file looks like::

    {
      "connections": {"default": "sqlite:///data/app.db"},
      "resolvers": {
        "authors": {
          "entity_class": "app.models.Author",
          "id_path": "id",
          "label_path": "name",
          "suggestions_fetcher": "find_by_nickname",
          "connection": "default",
          "limit": 5
        }
      }
    }
"""

import importlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///data/autocomplete.db"
DEFAULT_SUGGESTIONS_LIMIT = 10

REQUIRED_RESOLVER_FIELDS = ["entity_class", "id_path", "label_path"]
OPTIONAL_RESOLVER_FIELDS = ["suggestions_fetcher", "connection", "limit"]


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


def import_string(dotted_path: str) -> Any:
    """
    Import an object from ``package.module.Name`` or ``package.module:name``.

    Raises:
        ConfigurationError: If the module or attribute cannot be found
    """
    if ":" in dotted_path:
        module_path, _, attr = dotted_path.partition(":")
    else:
        module_path, _, attr = dotted_path.rpartition(".")
    if not module_path or not attr:
        raise ConfigurationError(f"'{dotted_path}' is not an importable path")
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module '{module_path}': {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"Module '{module_path}' has no attribute '{attr}'") from None


@dataclass
class Settings:
    """Settings read from the environment."""

    database_url: str = DEFAULT_DATABASE_URL
    suggestions_limit: int = DEFAULT_SUGGESTIONS_LIMIT
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        raw_limit = os.getenv("AUTOCOMPLETE_SUGGESTIONS_LIMIT", str(DEFAULT_SUGGESTIONS_LIMIT))
        try:
            limit = int(raw_limit)
        except ValueError:
            raise ConfigurationError(
                f"AUTOCOMPLETE_SUGGESTIONS_LIMIT must be an integer, got {raw_limit!r}"
            ) from None
        log_dir = os.getenv("AUTOCOMPLETE_LOG_DIR")
        return cls(
            database_url=os.getenv("AUTOCOMPLETE_DATABASE_URL", DEFAULT_DATABASE_URL),
            suggestions_limit=limit,
            log_level=os.getenv("AUTOCOMPLETE_LOG_LEVEL", "INFO"),
            log_dir=Path(log_dir) if log_dir else None,
        )


def validate_resolver_definition(key: str, definition: Any) -> None:
    """Raise ConfigurationError listing every problem with one resolver definition."""
    if not isinstance(definition, dict):
        raise ConfigurationError(f"Resolver '{key}' must be an object")

    errors = []
    for f in REQUIRED_RESOLVER_FIELDS:
        if f not in definition:
            errors.append(f"missing required field: {f}")
        elif not isinstance(definition[f], str) or not definition[f].strip():
            errors.append(f"field '{f}' must be a non-empty string")

    unknown = set(definition) - set(REQUIRED_RESOLVER_FIELDS) - set(OPTIONAL_RESOLVER_FIELDS)
    if unknown:
        errors.append(f"unknown fields: {', '.join(sorted(unknown))}")

    limit = definition.get("limit")
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
        errors.append("field 'limit' must be a positive integer")

    if errors:
        raise ConfigurationError(f"Invalid resolver '{key}': " + "; ".join(errors))


def validate_connections(connections: Dict[str, Any]) -> None:
    """Raise ConfigurationError unless every connection maps a name to a database URL or path."""
    errors = []
    for name, url in connections.items():
        if not name.strip():
            errors.append("connection names must be non-empty")
        elif not isinstance(url, str) or not url.strip():
            errors.append(f"connection '{name}' must be a non-empty string")
    if errors:
        raise ConfigurationError("Invalid connections: " + "; ".join(errors))


def load_resolver_definitions(path: Path, default_database_url: str = DEFAULT_DATABASE_URL) -> Dict[str, Any]:
    """
    Load and validate a resolver definitions file.

    Fetchers written as ``module:function`` are imported into callables;
    any other string stays a repository method name. Files without a
    ``connections`` object get a single "default" connection to
    ``default_database_url``.

    Returns:
        Dict with ``connections`` (name -> URL) and ``resolvers`` (key -> definition)
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Resolver configuration not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Resolver configuration {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Resolver configuration {path} must be a JSON object")

    connections = data.get("connections") or {"default": default_database_url}
    resolvers = data.get("resolvers", {})
    if not isinstance(connections, dict) or not isinstance(resolvers, dict):
        raise ConfigurationError("'connections' and 'resolvers' must be JSON objects")
    validate_connections(connections)

    loaded = {}
    for key, definition in resolvers.items():
        validate_resolver_definition(key, definition)
        definition = dict(definition)
        fetcher = definition.get("suggestions_fetcher")
        if isinstance(fetcher, str) and ":" in fetcher:
            definition["suggestions_fetcher"] = import_string(fetcher)
        loaded[key] = definition

    return {"connections": connections, "resolvers": loaded}
