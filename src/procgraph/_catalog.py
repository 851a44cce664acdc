"""Operation catalog: the operations a backend offers and their formal parameters."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)


class OperationParameter(BaseModel):
    """A formal parameter of an operation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    description: str = ""
    optional: bool = False


class OperationDef(BaseModel):
    """Definition of a single operation offered by a backend.

    Backend capability listings name the operation with ``id``; ``name`` is
    accepted as well.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(validation_alias=AliasChoices("name", "id"))
    summary: str = ""
    description: str = ""
    parameters: tuple[OperationParameter, ...] = ()

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Names of the formal parameters in declaration order."""
        return tuple(p.name for p in self.parameters)

    @property
    def arity(self) -> int:
        return len(self.parameters)


class OperationCatalog(BaseModel):
    """Immutable lookup of operation definitions by name.

    Example:
        >>> catalog = OperationCatalog.from_processes([
        ...     {"id": "add", "parameters": [{"name": "x"}, {"name": "y"}]},
        ... ])
        >>> catalog.get("add").parameter_names
        ('x', 'y')

    """

    model_config = ConfigDict(frozen=True)

    operations: tuple[OperationDef, ...] = ()

    _index: dict[str, OperationDef] = PrivateAttr(default_factory=dict)

    def model_post_init(self, context: Any, /) -> None:  # noqa: ARG002
        for operation in self.operations:
            if operation.name in self._index:
                logger.debug(f"Operation '{operation.name}' is listed more than once, using the last definition")
            self._index[operation.name] = operation

    @classmethod
    def from_processes(cls, entries: Iterable[Mapping[str, Any] | OperationDef]) -> OperationCatalog:
        """Build a catalog from raw process entries."""
        return cls(operations=tuple(OperationDef.model_validate(entry) for entry in entries))

    @classmethod
    def from_listing(cls, data: Any) -> OperationCatalog:
        """Build a catalog from a list of entries or a ``{"processes": [...]}`` listing."""
        if isinstance(data, dict):
            if "processes" not in data:
                msg = "Operation listing must contain a 'processes' key."
                raise ValueError(msg)
            data = data["processes"]
        if not isinstance(data, list):
            msg = f"Operation listing must be a list, got {type(data).__name__}."
            raise TypeError(msg)
        return cls.from_processes(data)

    def get(self, name: str) -> OperationDef | None:
        """Get an operation definition by name, or None if it is not offered."""
        return self._index.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._index)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._index)

    def __iter__(self) -> Iterator[OperationDef]:  # type: ignore[override]
        return iter(self._index.values())

    def definitions(self) -> tuple[OperationDef, ...]:
        """All definitions, one per operation name."""
        return tuple(self._index.values())


def load_catalog(path: Path) -> OperationCatalog:
    """Load an operation catalog from a JSON capability listing."""
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    catalog = OperationCatalog.from_listing(data)
    logger.debug(f"Loaded {len(catalog)} operations from {path}")
    return catalog
