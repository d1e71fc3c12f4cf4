"""
Pydantic Schemas for Request/Response Validation

Covers the staff dashboard (menu edits, commands, orders), the public
customer view (menu, order submission) and the rows pushed by the
realtime listener.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carta.menu.items import Category, MenuItem
from carta.models import OrderStatus


# =============================================================================
# MENU
# =============================================================================

class MenuItemSchema(BaseModel):
    """A menu item as exposed over HTTP."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: Category
    price: float = Field(..., ge=0)
    description: str = ""
    image: str = ""
    available: bool = True

    @classmethod
    def from_item(cls, item: MenuItem) -> "MenuItemSchema":
        return cls.model_validate(item)


class MenuItemCreate(BaseModel):
    """Request schema for adding a dish."""
    name: str = Field(..., min_length=1, max_length=120, examples=["Pollo a la Brasa"])
    category: Category = Field(..., examples=["Fondos"])
    price: float = Field(..., ge=0, examples=[25.0])
    description: str = Field(default="", max_length=500)
    image: str = Field(default="", description="Image URL; a placeholder is used when empty")
    available: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class PriceUpdate(BaseModel):
    price: float = Field(..., examples=[20.0])


class StatusReportResponse(BaseModel):
    message: str
    available: int
    sold_out: int


# =============================================================================
# COMMANDS
# =============================================================================

class CommandRequest(BaseModel):
    """Raw utterance from speech-to-text or typed text."""
    utterance: str = Field(..., max_length=500, examples=["agotar Lomo Saltado"])


class CommandResponse(BaseModel):
    kind: str
    utterance: str
    intent: Optional[str] = None
    message: Optional[str] = None
    menu: List[MenuItemSchema] = []


# =============================================================================
# ORDERS
# =============================================================================

class OrderLine(BaseModel):
    """One cart line with the price snapshot taken at submission."""
    id: int
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    """A table order; id and created_at are assigned by the backend."""
    id: Optional[str] = None
    table_number: str
    items: List[OrderLine]
    total: float = Field(..., ge=0)
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None

    @field_validator("table_number", mode="before")
    @classmethod
    def table_as_text(cls, v: Any) -> str:
        return str(v).strip()

    def to_row(self) -> dict[str, Any]:
        """Row for insert_order (backend fills id and created_at)."""
        return {
            "table_number": self.table_number,
            "items": [line.model_dump() for line in self.items],
            "total": self.total,
            "status": self.status.value,
        }


class OrderCreateRequest(BaseModel):
    """
    Customer order submission.

    `items` maps menu item id to quantity, exactly as the cart holds it.
    A missing table number is reported back so the client can ask for it.
    """
    table_number: Optional[str] = Field(None, examples=["5"])
    items: dict[int, int] = Field(default_factory=dict, examples=[{1: 2, 4: 1}])

    @field_validator("table_number", mode="before")
    @classmethod
    def blank_table_is_missing(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderCreateResponse(BaseModel):
    success: bool
    message: str
    order: Order


# =============================================================================
# PUBLIC VIEW / MISC
# =============================================================================

class MenuSection(BaseModel):
    category: Category
    items: List[MenuItemSchema]


class PublicMenuResponse(BaseModel):
    """Available items grouped by category, in category display order."""
    restaurant: str
    currency: str
    table_number: Optional[str] = None
    sections: List[MenuSection]


class ShareLinkResponse(BaseModel):
    url: str
    view: str
    table_number: Optional[str] = None


class ViewResponse(BaseModel):
    app: str
    version: str
    view: str
    table_number: Optional[str] = None


class NotificationSchema(BaseModel):
    channel: str
    level: str
    title: str
    description: Optional[str] = None
    created_at: datetime


class HealthResponse(BaseModel):
    status: str
    storage: str
    remote_ok: bool
    menu_items: int
    orders: int
    timestamp: datetime


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
