"""
Property path parsing and traversal.

A property path addresses a value inside nested objects, for example
``author.address.city`` or ``tags[0].name``. Dotted steps read attributes
(or keys, when the current value is a mapping); bracketed steps index into
sequences and mappings.
"""

import functools
import re
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import dataclass
from typing import Any, Tuple

from .exceptions import FieldResolutionError, InvalidPropertyPathError

_PROPERTY_RE = re.compile(r"[^.\[\]]+")
_INDEX_RE = re.compile(r"\[([^\[\]]+)\]")


@dataclass(frozen=True)
class PathStep:
    """One step of a property path."""

    name: str
    is_index: bool = False

    def __str__(self) -> str:
        return f"[{self.name}]" if self.is_index else self.name


@functools.lru_cache(maxsize=256)
def parse_property_path(path: str) -> Tuple[PathStep, ...]:
    """
    Split a property path into its steps.

    Args:
        path: Path such as ``author.name`` or ``items[2].label``

    Returns:
        Tuple of PathStep, in traversal order

    Raises:
        InvalidPropertyPathError: If the path is empty or malformed
    """
    if not isinstance(path, str) or not path:
        raise InvalidPropertyPathError(f"Property path must be a non-empty string, got {path!r}")

    steps = []
    pos = 0
    length = len(path)
    while pos < length:
        if path[pos] == "[":
            match = _INDEX_RE.match(path, pos)
            if match is None:
                raise InvalidPropertyPathError(f"Unclosed or empty index at offset {pos} in '{path}'")
            steps.append(PathStep(match.group(1), is_index=True))
        else:
            match = _PROPERTY_RE.match(path, pos)
            if match is None:
                raise InvalidPropertyPathError(f"Expected a property name at offset {pos} in '{path}'")
            steps.append(PathStep(match.group(0)))
        pos = match.end()

        if pos == length:
            break
        if path[pos] == ".":
            pos += 1
            # A dot must be followed by a property name, not an index or the end.
            if pos == length or path[pos] in ".[":
                raise InvalidPropertyPathError(f"Expected a property name after '.' in '{path}'")
        elif path[pos] != "[":
            raise InvalidPropertyPathError(f"Unexpected character {path[pos]!r} at offset {pos} in '{path}'")

    return tuple(steps)


def is_nested_path(path: str) -> bool:
    """True if the path has more than one step or uses index access."""
    steps = parse_property_path(path)
    return len(steps) > 1 or steps[0].is_index


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


class PropertyAccessor:
    """Reads and writes values through property paths."""

    def get_value(self, obj: Any, path: str) -> Any:
        """
        Read the value at ``path`` starting from ``obj``.

        Raises:
            InvalidPropertyPathError: If the path is malformed
            FieldResolutionError: If any step does not resolve
        """
        value = obj
        for step in parse_property_path(path):
            value = self._read(value, step, path)
        return value

    def is_readable(self, obj: Any, path: str) -> bool:
        try:
            self.get_value(obj, path)
        except FieldResolutionError:
            return False
        return True

    def set_value(self, obj: Any, path: str, value: Any) -> None:
        """
        Write ``value`` at ``path``; every step but the last must already resolve.

        Raises:
            InvalidPropertyPathError: If the path is malformed
            FieldResolutionError: If the target cannot be reached or written
        """
        steps = parse_property_path(path)
        target = obj
        for step in steps[:-1]:
            target = self._read(target, step, path)
        self._write(target, steps[-1], path, value)

    def _read(self, obj: Any, step: PathStep, path: str) -> Any:
        if step.is_index:
            if _is_sequence(obj):
                try:
                    return obj[int(step.name)]
                except (ValueError, IndexError):
                    raise FieldResolutionError(path, str(step), type(obj).__name__) from None
            if isinstance(obj, Mapping):
                if step.name in obj:
                    return obj[step.name]
                if step.name.lstrip("-").isdigit() and int(step.name) in obj:
                    return obj[int(step.name)]
            raise FieldResolutionError(path, str(step), type(obj).__name__)

        if isinstance(obj, Mapping):
            if step.name in obj:
                return obj[step.name]
            raise FieldResolutionError(path, str(step), type(obj).__name__)
        try:
            return getattr(obj, step.name)
        except AttributeError:
            raise FieldResolutionError(path, str(step), type(obj).__name__) from None

    def _write(self, obj: Any, step: PathStep, path: str, value: Any) -> None:
        if step.is_index:
            if isinstance(obj, MutableSequence):
                try:
                    obj[int(step.name)] = value
                    return
                except (ValueError, IndexError):
                    raise FieldResolutionError(path, str(step), type(obj).__name__) from None
            if isinstance(obj, MutableMapping):
                obj[step.name] = value
                return
            raise FieldResolutionError(path, str(step), type(obj).__name__)

        if isinstance(obj, MutableMapping):
            obj[step.name] = value
            return
        try:
            setattr(obj, step.name, value)
        except (AttributeError, TypeError):
            raise FieldResolutionError(path, str(step), type(obj).__name__) from None
