"""
Resolver lookup by key.

Host applications register one resolver per autocomplete field and look
them up by key when a suggestions request comes in.
"""

import copy
from typing import Any, Dict, List, Optional

from .database import Registry
from .exceptions import ConfigurationError
from .logger import get_logger
from .resolver import DataResolver, EntityDataResolver, EntityDescriptor, LimitAwareDataResolver, Suggestion

logger = get_logger()


class DataResolverManager:
    """Keeps data resolvers by key."""

    def __init__(self):
        self._resolvers: Dict[str, DataResolver] = {}

    def add_resolver(self, key: str, resolver: DataResolver) -> None:
        if not isinstance(resolver, DataResolver):
            raise ConfigurationError(f"Resolver '{key}' must be a DataResolver, got {type(resolver).__name__}")
        if key in self._resolvers:
            logger.warning("Replacing registered resolver", key=key)
        self._resolvers[key] = resolver

    def has_resolver(self, key: str) -> bool:
        return key in self._resolvers

    def get_resolver(self, key: str) -> DataResolver:
        try:
            return self._resolvers[key]
        except KeyError:
            raise ConfigurationError(
                f"No data resolver registered under '{key}'. Known keys: {', '.join(self.keys()) or 'none'}"
            ) from None

    def keys(self) -> List[str]:
        return sorted(self._resolvers)

    def get_suggestions(
        self,
        key: str,
        term: str,
        limit: Optional[int] = None,
        context: Any = None,
    ) -> List[Suggestion]:
        """
        Suggestions from the resolver registered under ``key``.

        ``limit``, when given, caps this lookup only: it is set on a copy of a
        limit-aware resolver, the registered one keeps its own limit.
        """
        resolver = self.get_resolver(key)
        if limit is not None and isinstance(resolver, LimitAwareDataResolver):
            resolver = copy.copy(resolver).set_suggestions_limit(limit)
        return resolver.get_suggestions(term, context)


def build_manager(
    resolvers: Dict[str, Dict[str, Any]],
    registry: Registry,
    default_limit: int,
) -> DataResolverManager:
    """
    Build entity resolvers from resolver definitions.

    Args:
        resolvers: Key -> definition, as returned by config.load_resolver_definitions
        registry: Persistence gateway shared by all resolvers
        default_limit: Limit for definitions that do not set one

    Returns:
        DataResolverManager with one EntityDataResolver per definition
    """
    manager = DataResolverManager()
    for key, definition in resolvers.items():
        descriptor = EntityDescriptor(
            entity_class=definition["entity_class"],
            id_path=definition["id_path"],
            label_path=definition["label_path"],
            suggestions_fetcher=definition.get("suggestions_fetcher"),
            connection_name=definition.get("connection"),
            suggestions_limit=definition.get("limit") or default_limit,
        )
        manager.add_resolver(key, EntityDataResolver(registry, descriptor))
        logger.debug("Registered resolver", key=key, entity=descriptor.entity_type)
    return manager
