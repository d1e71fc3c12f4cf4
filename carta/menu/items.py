"""Menu item domain type and its row conversions."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

CURRENCY = "S/"

PLACEHOLDER_IMAGE = (
    "https://images.unsplash.com/photo-1546069901-ba9599a7e63c"
    "?auto=format&fit=crop&w=800&q=80"
)


class Category(str, Enum):
    """Menu sections, in display order."""
    ENTRADAS = "Entradas"
    FONDOS = "Fondos"
    POSTRES = "Postres"
    BEBIDAS = "Bebidas"


@dataclass(frozen=True)
class MenuItem:
    """A dish or drink as shown on the menu."""

    id: int
    name: str
    category: Category
    price: float
    description: str = ""
    image: str = ""
    available: bool = True

    def to_row(self) -> dict[str, Any]:
        """Serialize to the remote row shape (category as plain text)."""
        row = asdict(self)
        row["category"] = self.category.value
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MenuItem":
        """Build from a remote row, ignoring server-managed columns."""
        return cls(
            id=int(row["id"]),
            name=str(row["name"]),
            category=Category(row["category"]),
            price=float(row["price"]),
            description=str(row.get("description") or ""),
            image=str(row.get("image") or ""),
            available=bool(row.get("available", True)),
        )


def clamp_price(price: float) -> float:
    """Prices never go below zero."""
    return max(0.0, float(price))
