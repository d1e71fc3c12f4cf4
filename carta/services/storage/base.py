"""
Remote Storage Abstract Base Class

The narrow CRUD + subscribe contract the menu and order layers use to
mirror state into a remote relational backend. Rows are plain dicts in the
wire shape of the `menu` and `orders` tables; the backend manages
`updated_at` (menu) and `created_at` / `id` (orders).

Implementations:
    - MockRemoteStore: in-memory tables with simulated latency/failures
    - SqlRemoteStore: PostgreSQL via SQLAlchemy, change feed over Redis
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

Row = dict[str, Any]

MENU_TABLE = "menu"
ORDERS_TABLE = "orders"


class ChangeOp(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class ChangeEvent:
    """
    One row change pushed by the backend.

    Attributes:
        op: Kind of change
        table: Table the row belongs to
        row: New row contents (empty for deletes)
        old: Previous row or at least its primary key (deletes, updates)
    """
    op: ChangeOp
    table: str
    row: Row
    old: Optional[Row] = None

    @property
    def key(self) -> Any:
        """Primary key of the affected row."""
        source = self.row if self.row else (self.old or {})
        return source.get("id")

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op.value, "table": self.table, "row": self.row, "old": self.old}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeEvent":
        return cls(
            op=ChangeOp(data["op"]),
            table=data["table"],
            row=data.get("row") or {},
            old=data.get("old"),
        )


ChangeCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


class RemoteStoreError(Exception):
    """Raised when a remote storage call fails."""


class Subscription(ABC):
    """Handle returned by subscribe(); closing it stops delivery."""

    @abstractmethod
    async def close(self) -> None:
        pass


class BaseRemoteStore(ABC):
    """
    Abstract base class for remote storage backends.

    Every method is a suspension point and may raise RemoteStoreError;
    callers decide how failures are surfaced.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name (e.g. "mock", "postgres")."""
        pass

    # -------------------------------------------------------------------------
    # menu
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_menu(self) -> list[Row]:
        """All menu rows ordered by category."""
        pass

    @abstractmethod
    async def upsert_menu(self, rows: Sequence[Row]) -> None:
        """Insert or replace menu rows by id."""
        pass

    @abstractmethod
    async def update_menu_item(self, item_id: int, changes: Row) -> None:
        """Partially update one menu row."""
        pass

    @abstractmethod
    async def delete_all_menu(self) -> None:
        pass

    # -------------------------------------------------------------------------
    # orders
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_orders(self) -> list[Row]:
        """All orders, newest first."""
        pass

    @abstractmethod
    async def insert_order(self, row: Row) -> Row:
        """Insert an order and return it with id and created_at filled in."""
        pass

    @abstractmethod
    async def update_order_status(self, order_id: str, status: str) -> None:
        pass

    @abstractmethod
    async def delete_order(self, order_id: str) -> None:
        pass

    # -------------------------------------------------------------------------
    # realtime / lifecycle
    # -------------------------------------------------------------------------

    @abstractmethod
    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """Deliver every change on `table` to `callback` until closed."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check backend connectivity."""
        pass

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
        return None
