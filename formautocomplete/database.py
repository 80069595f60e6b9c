"""
Database connections and the persistence gateway.

Uses SQLAlchemy; any database URL it understands works, bare file paths are
treated as SQLite databases.
"""

from pathlib import Path
from typing import Dict, Optional, Union

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, scoped_session, sessionmaker

from .exceptions import ConfigurationError
from .logger import get_logger
from .repository import EntityRepository

Base = declarative_base()

logger = get_logger()


def database_url(target: Union[str, Path]) -> str:
    """
    Normalize a database target into a SQLAlchemy URL.

    Args:
        target: Either a full URL (``postgresql://...``) or a SQLite file path

    Returns:
        SQLAlchemy database URL
    """
    if isinstance(target, str) and "://" in target:
        return target
    db_path = Path(target)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def init_database(target: Union[str, Path]) -> None:
    """
    Initialize database and create tables for every mapped entity.

    Args:
        target: Database URL or path to SQLite database file
    """
    engine = create_engine(database_url(target))
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(target: Union[str, Path]):
    """
    Get database session.

    Args:
        target: Database URL or path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(database_url(target))
    Session = sessionmaker(bind=engine)
    return Session()


class Registry:
    """
    Named database connections and repository lookup.

    Each connection gets one engine and one thread-local session, created
    lazily on first use.
    """

    def __init__(self, connections: Dict[str, Union[str, Path]], default_connection: str = "default"):
        """
        Args:
            connections: Connection name -> database URL or SQLite path
            default_connection: Name used when no connection is requested
        """
        if default_connection not in connections:
            raise ConfigurationError(
                f"Default connection '{default_connection}' is not among the configured connections: "
                f"{sorted(connections)}"
            )
        self.default_connection = default_connection
        self._urls = {name: database_url(target) for name, target in connections.items()}
        self._engines: Dict[str, Engine] = {}
        self._sessions: Dict[str, scoped_session] = {}

    @property
    def connection_names(self) -> list[str]:
        return list(self._urls)

    def _resolve_name(self, name: Optional[str]) -> str:
        name = name or self.default_connection
        if name not in self._urls:
            raise ConfigurationError(f"Unknown connection '{name}'")
        return name

    def get_engine(self, name: Optional[str] = None) -> Engine:
        name = self._resolve_name(name)
        if name not in self._engines:
            logger.debug("Creating engine", connection=name)
            self._engines[name] = create_engine(self._urls[name])
        return self._engines[name]

    def get_manager(self, name: Optional[str] = None):
        """
        Session for the named connection, shared within the calling thread.

        Raises:
            ConfigurationError: If the connection name is unknown
        """
        name = self._resolve_name(name)
        if name not in self._sessions:
            self._sessions[name] = scoped_session(sessionmaker(bind=self.get_engine(name)))
        return self._sessions[name]()

    def get_repository(self, entity_class: type, name: Optional[str] = None) -> EntityRepository:
        """
        Repository for a mapped entity class.

        Entities may declare their own repository through a
        ``__repository_class__`` attribute; otherwise the generic
        EntityRepository is used.

        Raises:
            ConfigurationError: If the class is not mapped or the connection is unknown
        """
        if inspect(entity_class, raiseerr=False) is None:
            raise ConfigurationError(f"{entity_class!r} is not a mapped entity class")
        repository_class = getattr(entity_class, "__repository_class__", None) or EntityRepository
        return repository_class(self.get_manager(name), entity_class)

    def create_all(self) -> None:
        """Create tables for every mapped entity on every connection."""
        for name in self._urls:
            Base.metadata.create_all(self.get_engine(name))

    def close(self, name: Optional[str] = None) -> None:
        """
        Release the sessions of the calling thread.

        Args:
            name: Only release this connection's session; all connections when omitted
        """
        if name is None:
            for session in self._sessions.values():
                session.remove()
            return
        session = self._sessions.get(self._resolve_name(name))
        if session is not None:
            session.remove()

    def dispose(self) -> None:
        """Close all sessions and engines."""
        self.close()
        for engine in self._engines.values():
            engine.dispose()
        self._sessions.clear()
        self._engines.clear()
