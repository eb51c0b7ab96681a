"""Immutable alias tables used for client and equipment extraction."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

AliasTable = Mapping[str, Tuple[str, ...]]


class EntityRegistry(BaseModel):
    """
    Canonical name -> surface aliases, per entity kind.

    Aliases are matched on folded text, so spelling them without accents is
    enough. The canonical name is what ends up on the ticket. Tables are
    read-only views; build a new registry to change them.
    """

    model_config = ConfigDict(frozen=True, validate_default=True)

    clients: AliasTable = {}
    equipment: AliasTable = {}
    components: AliasTable = {}

    @field_validator("clients", "equipment", "components")
    @classmethod
    def include_canonical(cls, table: AliasTable) -> AliasTable:
        """Every canonical name is also one of its own aliases."""
        return MappingProxyType(
            {name: tuple(dict.fromkeys((name, *aliases))) for name, aliases in table.items()}
        )
