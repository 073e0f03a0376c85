"""Immutable catalog of metric definitions.

replaces the old package-level metrics map. you build one explicitly and pass
it around, so tests can have as many catalogs as they like.
"""

from collections.abc import Iterable, Iterator
from types import MappingProxyType

from dashquery.errors import CatalogValidationError
from dashquery.models.metric import MetricDefinition


class Catalog:
    """Read-only lookup of metric name -> definition.

    validated once at construction and never mutated afterwards, which is what
    makes it safe to read from any number of concurrent resolutions without
    locking.
    """

    __slots__ = ("_definitions",)

    def __init__(self, definitions: Iterable[MetricDefinition]) -> None:
        definitions = list(definitions)
        if not definitions:
            raise CatalogValidationError("no metrics defined")

        by_name: dict[str, MetricDefinition] = {}
        for definition in definitions:
            if definition.name in by_name:
                raise CatalogValidationError(f"duplicate metric name: {definition.name}")
            by_name[definition.name] = definition

        # mapping proxy so nobody can poke at the dict through a back door
        self._definitions = MappingProxyType(by_name)

    def lookup(self, name: str) -> MetricDefinition | None:
        """Get a metric definition by name, or None if it isn't registered."""
        return self._definitions.get(name)

    def all_names(self) -> list[str]:
        """All registered metric names. callers shouldn't rely on the order."""
        return list(self._definitions)

    def definitions(self) -> list[MetricDefinition]:
        return list(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[MetricDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"Catalog({len(self)} metrics)"
