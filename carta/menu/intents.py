"""
Mutation intents.

Each intent is an immutable description of a menu change, independent of
whether it came from a voice command, the dashboard or another program.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from carta.menu.items import Category, MenuItem


@dataclass(frozen=True)
class SetPrice:
    """Set the price of the item with this exact id."""
    item_id: int
    price: float


@dataclass(frozen=True)
class SetPriceByName:
    """Set the price of every item whose name fuzzy-matches."""
    name: str
    price: float


@dataclass(frozen=True)
class AdjustPriceByCategory:
    """Add delta (possibly negative) to every item in matching categories."""
    category: str
    delta: float


@dataclass(frozen=True)
class DiscountByCategory:
    """Take percent off every item in matching categories."""
    category: str
    percent: float


@dataclass(frozen=True)
class ToggleAvailability:
    """Flip availability of every item whose name fuzzy-matches."""
    name: str


@dataclass(frozen=True)
class ResetToDefaults:
    pass


@dataclass(frozen=True)
class ReplaceAll:
    """Replace the whole menu with an externally loaded snapshot."""
    items: tuple[MenuItem, ...]


@dataclass(frozen=True)
class AddItem:
    """Append a new item; the id is assigned by the reducer."""
    name: str
    category: Category
    price: float
    description: str = ""
    image: str = ""
    available: Optional[bool] = None


MutationIntent = Union[
    SetPrice,
    SetPriceByName,
    AdjustPriceByCategory,
    DiscountByCategory,
    ToggleAvailability,
    ResetToDefaults,
    ReplaceAll,
    AddItem,
]

# Intents that are mirrored with a coalesced full-menu upsert.
BULK_INTENTS = (AddItem, DiscountByCategory, AdjustPriceByCategory)
