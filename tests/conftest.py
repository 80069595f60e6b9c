"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path

import pytest

from formautocomplete.database import Registry
from formautocomplete.logger import get_logger
from sample_models import Author, AuthorRepository, Book


@pytest.fixture(autouse=True)
def quiet_logger():
    """Route the shared logger nowhere and start every test with fresh metrics."""
    logger = get_logger()
    logger.configure(level="DEBUG", enable_console=False)
    logger.reset_metrics()
    AuthorRepository.calls.clear()
    yield logger
    logger.configure(level="INFO", enable_console=False)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "autocomplete.db"


@pytest.fixture
def registry(db_path):
    """Registry with one SQLite connection and all tables created."""
    reg = Registry({"default": db_path})
    reg.create_all()
    yield reg
    reg.dispose()


@pytest.fixture
def session(registry):
    return registry.get_manager()


@pytest.fixture
def authors(session):
    """Ann, Anne and Bob, inserted in id order."""
    rows = [
        Author(id=1, name="Ann", nickname="Annie"),
        Author(id=2, name="Anne", nickname="Jo"),
        Author(id=3, name="Bob", nickname="Johnny"),
    ]
    session.add_all(rows)
    session.commit()
    return rows


@pytest.fixture
def books(session, authors):
    rows = [
        Book(id=10, title="Northern Lights", author_id=1),
        Book(id=11, title="The Subtle Knife", author_id=2),
        Book(id=12, title="Amber Spyglass", author_id=3),
    ]
    session.add_all(rows)
    session.commit()
    return rows


@pytest.fixture
def resolver_config(tmp_path, db_path) -> Path:
    """Resolver definitions file pointing at the test database."""
    config_file = tmp_path / "resolvers.json"
    data = {
        "connections": {"default": f"sqlite:///{db_path}"},
        "resolvers": {
            "authors": {
                "entity_class": "sample_models.Author",
                "id_path": "id",
                "label_path": "name",
                "limit": 5,
            },
            "nicknames": {
                "entity_class": "sample_models.Author",
                "id_path": "id",
                "label_path": "name",
                "suggestions_fetcher": "find_by_nickname",
            },
            "books": {
                "entity_class": "sample_models.Book",
                "id_path": "id",
                "label_path": "author.name",
                "suggestions_fetcher": "sample_models:books_by_author_name",
                "limit": 2,
            },
        },
    }
    config_file.write_text(json.dumps(data, indent=2))
    return config_file
