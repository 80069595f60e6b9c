"""
Suggestion fetch strategies.

A configured fetcher value is classified once into one of:

- DefaultQuery: no fetcher, the resolver runs its label LIKE query
- NamedOperation: the name of a repository method ``method(term, limit)``
- CustomCallable: any callable ``fn(term, limit)``
- InvalidFetcher: anything else; rejected when a lookup is attempted
"""

from dataclasses import dataclass
from typing import Any, Callable, Sequence, Union

from .exceptions import ConfigurationError
from .repository import EntityRepository

INVALID_FETCHER_MESSAGE = (
    "The suggestions fetcher must be either the name of a repository method or a callable."
)


@dataclass(frozen=True)
class DefaultQuery:
    label = "default"


@dataclass(frozen=True)
class NamedOperation:
    name: str

    label = "named"


@dataclass(frozen=True)
class CustomCallable:
    fn: Callable[[str, int], Sequence[Any]]

    label = "callable"


@dataclass(frozen=True, eq=False)
class InvalidFetcher:
    value: Any

    label = "invalid"


FetchStrategy = Union[DefaultQuery, NamedOperation, CustomCallable, InvalidFetcher]


def resolve_fetch_strategy(fetcher: Any) -> FetchStrategy:
    """Classify a configured fetcher value. Never raises."""
    if fetcher is None:
        return DefaultQuery()
    if isinstance(fetcher, str):
        return NamedOperation(fetcher)
    if callable(fetcher):
        return CustomCallable(fetcher)
    return InvalidFetcher(fetcher)


def call_fetcher(
    strategy: FetchStrategy,
    repository_factory: Callable[[], EntityRepository],
    term: str,
    limit: int,
) -> Sequence[Any]:
    """
    Run a custom fetch strategy.

    Args:
        strategy: NamedOperation or CustomCallable
        repository_factory: Returns the entity repository; only called for named operations
        term: Search term
        limit: Maximum number of entities the strategy should return

    Returns:
        Whatever the strategy returns, unchanged

    Raises:
        ConfigurationError: If the strategy is invalid, or the repository has no such method
    """
    if isinstance(strategy, NamedOperation):
        repository = repository_factory()
        operation = getattr(repository, strategy.name, None)
        if strategy.name.startswith("_") or not callable(operation):
            raise ConfigurationError(
                f"{INVALID_FETCHER_MESSAGE} {type(repository).__name__} has no method '{strategy.name}'."
            )
        return operation(term, limit)

    if isinstance(strategy, CustomCallable):
        return strategy.fn(term, limit)

    if isinstance(strategy, InvalidFetcher):
        raise ConfigurationError(f"{INVALID_FETCHER_MESSAGE} Got {type(strategy.value).__name__}.")

    raise ConfigurationError(f"No custom fetcher configured ({type(strategy).__name__})")
