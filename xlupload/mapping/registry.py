from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError
from .mapper import ColumnRowMapper, RowMapper

"""Mapper resolution.

Two strategies, tried in order:
1. named instance: a shared, pre-registered mapper looked up by name
2. type identifier: a fresh mapper built by a registered factory (with options)

The registry is passed explicitly to the pipeline; there is no process-wide state.
"""

__all__ = [
    "MapperFactory",
    "MapperSpec",
    "MapperRegistry",
    "default_registry",
]

logger = logging.getLogger(__name__)

MapperFactory = Callable[..., RowMapper]


@dataclass(frozen=True)
class MapperSpec:
    """How to obtain a mapper. At least one of instance / type must be set."""
    instance: str | None = None  # named shared instance (wins when both are set)
    type: str | None = None  # factory identifier
    options: Mapping[str, Any] = field(default_factory=dict)  # factory keyword arguments

    def describe(self) -> str:
        if self.instance:
            return f"instance:{self.instance}"
        if self.type:
            return f"type:{self.type}"
        return "<unset>"


class MapperRegistry:
    def __init__(
        self,
        instances: Mapping[str, RowMapper] | None = None,
        factories: Mapping[str, MapperFactory] | None = None,
    ) -> None:
        self._instances: dict[str, RowMapper] = dict(instances or {})
        self._factories: dict[str, MapperFactory] = dict(factories or {})

    def register_instance(self, name: str, mapper: RowMapper) -> None:
        self._instances[name] = mapper

    def register_factory(self, type_id: str, factory: MapperFactory) -> None:
        self._factories[type_id] = factory

    @property
    def instance_names(self) -> list[str]:
        return sorted(self._instances)

    @property
    def factory_names(self) -> list[str]:
        return sorted(self._factories)

    def get_instance(self, name: str) -> RowMapper:
        try:
            return self._instances[name]
        except KeyError:
            raise ConfigurationError(f"no mapper instance registered as '{name}'") from None

    def create(self, type_id: str, options: Mapping[str, Any] | None = None) -> RowMapper:
        try:
            factory = self._factories[type_id]
        except KeyError:
            raise ConfigurationError(f"no mapper type registered as '{type_id}'") from None
        try:
            return factory(**dict(options or {}))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"cannot create mapper '{type_id}': {e}") from e

    def resolve(self, spec: MapperSpec) -> RowMapper:
        """Return the mapper described by spec.

        Raises:
            ConfigurationError: neither instance nor type is configured, or the
                name / identifier is unknown
        """
        if spec.instance:
            if spec.type:
                logger.debug("mapper instance '%s' takes precedence over type '%s'", spec.instance, spec.type)
            return self.get_instance(spec.instance)
        if spec.type:
            return self.create(spec.type, spec.options)
        raise ConfigurationError("no row mapper configured (set a mapper instance name or type)")


def default_registry() -> MapperRegistry:
    """Registry with the built-in factories ("columns" -> ColumnRowMapper)."""
    return MapperRegistry(factories={"columns": ColumnRowMapper})
