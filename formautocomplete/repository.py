"""
Entity repositories.

Responsibilities:
- Query access for one mapped entity class.
- Host custom suggestion fetchers (``method(term, limit)``) in subclasses.

Non-Responsibilities:
- No suggestion formatting.
- No writes.
"""

from typing import Any, Dict, List

from sqlalchemy.orm import Query, aliased


class EntityRepository:
    """Generic repository; subclass it to add named fetch operations."""

    def __init__(self, session, entity_class: type):
        self.session = session
        self.entity_class = entity_class
        self._aliases: Dict[str, Any] = {}

    def alias(self, name: str):
        """Aliased entity for ``name``; the same object is returned for the same name."""
        if name not in self._aliases:
            self._aliases[name] = aliased(self.entity_class, name=name)
        return self._aliases[name]

    def create_query_builder(self, alias: str) -> Query:
        """Query selecting the entity under ``alias``; refer to columns through ``self.alias(alias)``."""
        return self.session.query(self.alias(alias))

    def find(self, identifier: Any):
        return self.session.get(self.entity_class, identifier)

    def find_all(self) -> List[Any]:
        return self.session.query(self.entity_class).all()

    def find_by(self, **criteria) -> List[Any]:
        return self.session.query(self.entity_class).filter_by(**criteria).all()
