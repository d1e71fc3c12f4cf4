"""
SQLAlchemy Database Models

Tables mirrored by the postgres storage backend:
- menu: one row per dish, with a server-managed updated_at
- orders: table orders with line items stored as JSON
"""

import enum

from sqlalchemy import JSON, BigInteger, Boolean, Column, DateTime, Enum, Float, String, Text
from sqlalchemy.sql import func

from carta.database import Base


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class MenuRow(Base):
    """
    Menu table - one row per dish or drink.

    Ids are assigned by the application (millisecond clock for new items),
    so they need 64 bits.
    """
    __tablename__ = "menu"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String(120), nullable=False)
    category = Column(String(20), nullable=False, index=True)
    price = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=False, default="")
    image = Column(Text, nullable=False, default="")
    available = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "description": self.description,
            "image": self.image,
            "available": self.available,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<MenuRow #{self.id} - {self.name} - {self.price:.2f}>"


class OrderRow(Base):
    """
    Orders table - one row per submitted table order.

    `items` holds the line snapshot (id, name, price, quantity) taken when
    the order was placed, independent of later menu price changes.
    """
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True)
    table_number = Column(String(20), nullable=False, index=True)
    items = Column(JSON, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "table_number": self.table_number,
            "items": self.items,
            "total": self.total,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Order {self.id} - Mesa {self.table_number} - {self.status.value}>"
