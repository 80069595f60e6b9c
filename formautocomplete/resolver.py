"""
Autocomplete data resolvers.

A data resolver turns a partial search term into a list of suggestions,
each a ``{"id": ..., "text": ...}`` mapping. EntityDataResolver backs the
suggestions with a mapped entity class: it either runs a "label contains
term" query or hands the lookup to a custom fetcher, then reads the id and
label of every result through property paths.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TypedDict

from sqlalchemy import inspect
from sqlalchemy.ext.hybrid import hybrid_property

from .config import import_string
from .database import Registry
from .exceptions import ConfigurationError
from .fetch import DefaultQuery, call_fetcher, resolve_fetch_strategy
from .logger import get_logger
from .property_path import PropertyAccessor, is_nested_path, parse_property_path
from .repository import EntityRepository

logger = get_logger()

ALIAS_SEPARATORS = (".", ":", "\\")


class Suggestion(TypedDict):
    id: Any
    text: Any


class DataResolver(ABC):
    """Maps a search term to suggestions."""

    @abstractmethod
    def get_suggestions(self, term: str, context: Any = None) -> List[Suggestion]:
        """
        Args:
            term: Partial search term typed by the user
            context: Optional caller data (e.g. the submitting form); resolvers may ignore it
        """


class LimitAwareDataResolver(DataResolver):
    """A resolver whose result count is capped by a configurable limit."""

    @abstractmethod
    def set_suggestions_limit(self, suggestions_limit: int) -> "LimitAwareDataResolver":
        """Set the cap for subsequent lookups and return the resolver."""


def entity_alias(entity_type: str) -> str:
    """
    Short lower-case alias for an entity type name.

    ``app.models.Author`` -> ``author``; names without separators are just lower-cased.
    """
    index = max(entity_type.rfind(sep) for sep in ALIAS_SEPARATORS)
    return entity_type[index + 1:].lower()


def entity_type_name(entity_class: type) -> str:
    return f"{entity_class.__module__}.{entity_class.__qualname__}"


@dataclass(frozen=True)
class EntityDescriptor:
    """
    What an entity resolver queries and how it reads results.

    ``entity_class`` may be given as a dotted import path; it is imported on
    construction. ``suggestions_fetcher`` is stored as given and only checked
    when a lookup runs.
    """

    entity_class: Any
    id_path: str
    label_path: str
    suggestions_fetcher: Any = None
    connection_name: Optional[str] = None
    suggestions_limit: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.entity_class, str):
            object.__setattr__(self, "entity_class", import_string(self.entity_class))
        if not isinstance(self.entity_class, type):
            raise ConfigurationError(f"entity_class must be a class, got {self.entity_class!r}")
        # Fail early on malformed paths.
        parse_property_path(self.id_path)
        parse_property_path(self.label_path)

    @property
    def entity_type(self) -> str:
        return entity_type_name(self.entity_class)


class EntityDataResolver(LimitAwareDataResolver):
    """
    Suggestions for one mapped entity class.

    Without a custom fetcher the resolver runs::

        SELECT <alias> FROM <entity> AS <alias>
        WHERE <alias>.<label_path> LIKE '%<term>%' LIMIT <limit>

    with the pattern bound as a parameter and no ordering. That query only
    supports a label path naming a mapped column (or hybrid) attribute of the entity; nested
    label paths need a custom fetcher and are rejected on construction.
    """

    def __init__(
        self,
        registry: Registry,
        descriptor: EntityDescriptor,
        property_accessor: Optional[PropertyAccessor] = None,
    ):
        self.registry = registry
        self.descriptor = descriptor
        self.property_accessor = property_accessor or PropertyAccessor()
        self.fetch_strategy = resolve_fetch_strategy(descriptor.suggestions_fetcher)
        self.suggestions_limit = descriptor.suggestions_limit

        if isinstance(self.fetch_strategy, DefaultQuery):
            self._check_default_query_label()

    @property
    def entity_class(self) -> type:
        return self.descriptor.entity_class

    @property
    def id_path(self) -> str:
        return self.descriptor.id_path

    @property
    def label_path(self) -> str:
        return self.descriptor.label_path

    def _check_default_query_label(self) -> None:
        label = self.label_path
        if is_nested_path(label):
            raise ConfigurationError(
                f"Label path '{label}' of {self.descriptor.entity_type} is nested; the default query "
                f"only compares a direct attribute. Configure a suggestions fetcher instead."
            )
        mapper = inspect(self.entity_class, raiseerr=False)
        if mapper is None:
            raise ConfigurationError(f"{self.descriptor.entity_type} is not a mapped entity class")
        # Relationships and other non-column attributes cannot be compared with LIKE.
        is_hybrid = isinstance(mapper.all_orm_descriptors.get(label), hybrid_property)
        if label not in mapper.column_attrs and not is_hybrid:
            raise ConfigurationError(
                f"Label path '{label}' is not a mapped column attribute of {self.descriptor.entity_type}"
            )

    def set_suggestions_limit(self, suggestions_limit: int) -> "EntityDataResolver":
        # Validated when a lookup runs, see _checked_limit.
        self.suggestions_limit = suggestions_limit
        return self

    def _checked_limit(self) -> int:
        limit = self.suggestions_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ConfigurationError(
                f"Suggestions limit for {self.descriptor.entity_type} must be a positive integer, got {limit!r}"
            )
        return limit

    def get_repository(self) -> EntityRepository:
        return self.registry.get_repository(self.entity_class, self.descriptor.connection_name)

    def get_suggestions(self, term: str, context: Any = None) -> List[Suggestion]:
        limit = self._checked_limit()
        strategy = self.fetch_strategy.label
        logger.debug(
            "Fetching suggestions",
            entity=self.descriptor.entity_type,
            term=term,
            limit=limit,
            strategy=strategy,
        )
        logger.record_request(strategy)

        try:
            data = self._get_suggestions_data(term, limit)
            suggestions = [
                Suggestion(
                    id=self.property_accessor.get_value(item, self.id_path),
                    text=self.property_accessor.get_value(item, self.label_path),
                )
                for item in data
            ]
        except Exception as e:
            logger.record_failure(type(e).__name__)
            logger.error(
                "Suggestion lookup failed",
                entity=self.descriptor.entity_type,
                strategy=strategy,
                error=str(e),
            )
            raise
        finally:
            self._release_session()

        logger.record_suggestions(len(suggestions))
        return suggestions

    def _release_session(self) -> None:
        # Entities are read before the session ends; the next lookup starts from the store.
        name = self.descriptor.connection_name or self.registry.default_connection
        if name in self.registry.connection_names:
            self.registry.close(name)

    def _get_suggestions_data(self, term: str, limit: int) -> Sequence[Any]:
        if not isinstance(self.fetch_strategy, DefaultQuery):
            return call_fetcher(self.fetch_strategy, self.get_repository, term, limit)

        # Compare the entity labels with the term and fetch the matches.
        alias = entity_alias(self.descriptor.entity_type)
        repository = self.get_repository()
        entity = repository.alias(alias)
        return (
            repository.create_query_builder(alias)
            .filter(getattr(entity, self.label_path).like(f"%{term}%"))
            .limit(limit)
            .all()
        )
