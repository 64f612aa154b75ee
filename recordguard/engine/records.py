"""Uniform access to records and collections.

Records are either mappings keyed by internal field names or objects exposing
their fields as attributes.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterator
from collections.abc import Mapping
from collections.abc import MutableMapping
import dataclasses
from dataclasses import dataclass
from typing import Any
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recordguard.engine.errors import ValidationErrors


def get_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def set_value(record: Any, name: str, value: Any) -> None:
    if isinstance(record, MutableMapping):
        record[name] = value
    else:
        setattr(record, name, value)


def iter_elements(collection: Any) -> Iterator[tuple[Any, Any]]:
    """Yield ``(segment, element)`` pairs; mappings yield their keys as segments."""
    if isinstance(collection, Mapping):
        yield from collection.items()
        return
    yield from enumerate(collection)


def map_elements(collection: Any, fn: Callable[[Any], Any]) -> Any:
    """Return a collection of the same shape with ``fn`` applied to every element.

    ``None`` elements are kept as they are.
    """

    def apply(element: Any) -> Any:
        return None if element is None else fn(element)

    if isinstance(collection, Mapping):
        return {key: apply(value) for key, value in collection.items()}
    if isinstance(collection, (set, frozenset)):
        return type(collection)(apply(element) for element in collection)
    if isinstance(collection, tuple):
        return tuple(apply(element) for element in collection)
    return [apply(element) for element in collection]


@dataclass(frozen=True)
class Traversal:
    """Where an executor pass stands in the record tree.

    ``descend`` is off when nested records were already processed by payload
    staging; ``staged`` then holds their errors by field name and
    ``unresolved`` names nested record fields whose payload was rejected.
    """

    depth: int
    max_depth: int
    descend: bool = True
    staged: Mapping[str, ValidationErrors] = dataclasses.field(default_factory=dict)
    unresolved: frozenset[str] = frozenset()

    @property
    def can_descend(self) -> bool:
        return self.depth < self.max_depth

    def child(self) -> Traversal:
        return Traversal(depth=self.depth + 1, max_depth=self.max_depth)
