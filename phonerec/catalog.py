"""Item metadata lookup used only for display."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import ConfigError


@dataclass(frozen=True)
class ItemInfo:
    brand: str
    name: str
    category: str
    price: str


def _key(item_id: Hashable) -> str:
    return str(item_id).strip()


@dataclass(frozen=True)
class ItemCatalog:
    """Read-only itemId -> `ItemInfo` table.

    Keys are normalised to strings so that ids parsed as int from the ratings file and
    ids written as YAML keys match. Unknown ids are never an error.
    """

    items: Mapping[str, ItemInfo] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_mapping(cls, raw: Mapping[Any, Any] | None) -> "ItemCatalog":
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConfigError(f"catalog must be a mapping of itemId -> details, got {type(raw)}")

        items: dict[str, ItemInfo] = {}
        for item_id, details in raw.items():
            if not isinstance(details, Mapping):
                raise ConfigError(f"catalog entry for item {item_id!r} must be a mapping")
            items[_key(item_id)] = ItemInfo(
                brand=str(details.get("brand", "")),
                name=str(details.get("name", "")),
                category=str(details.get("category", "")),
                price=str(details.get("price", "")),
            )
        return cls(items=MappingProxyType(items))

    def get(self, item_id: Hashable) -> ItemInfo | None:
        return self.items.get(_key(item_id))

    def __contains__(self, item_id: object) -> bool:
        return isinstance(item_id, Hashable) and _key(item_id) in self.items

    def __len__(self) -> int:
        return len(self.items)

    def describe(self, item_id: Hashable, value: float) -> str:
        """One display line for a recommendation; falls back to the raw id when unknown."""
        info = self.get(item_id)
        if info is None:
            return f"Brand ID: {item_id}, Preference Value: {float(value):.4f} (Phone details not found)"
        return (
            f"Brand: {info.brand}, Name: {info.name}, Category: {info.category}, "
            f"Price: ${info.price}, Predicted Preference: {float(value):.4f}"
        )
