from datetime import datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from till.db import Base
from till.schemas import DeliveryStatus, DeliveryType, OrderType, PaymentStatus


def _one_of(column: str, choices: type[Enum], name: str) -> CheckConstraint:
    allowed = ", ".join(f"'{choice.value}'" for choice in choices)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total >= 0", name="order_total_non_negative"),
        _one_of("order_type", OrderType, "order_type"),
        _one_of("delivery_type", DeliveryType, "order_delivery_type"),
        _one_of("payment_status", PaymentStatus, "order_payment_status"),
        _one_of("delivery_status", DeliveryStatus, "order_delivery_status"),
        # AUTOINCREMENT keeps the counter in sqlite_sequence, which is what
        # renumbering and the nightly reset rewind.
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    order_type: Mapped[str] = mapped_column(Text, nullable=False, default=OrderType.TAKEAWAY.value)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    delivery_type: Mapped[str] = mapped_column(Text, nullable=False, default=DeliveryType.DELAYED.value)
    delivery_time: Mapped[str | None] = mapped_column(Text)
    payment_status: Mapped[str] = mapped_column(Text, nullable=False, default=PaymentStatus.UNPAID.value)
    payment_method: Mapped[str | None] = mapped_column(Text)
    delivery_status: Mapped[str] = mapped_column(
        Text, nullable=False, default=DeliveryStatus.IN_PREPARATION.value
    )


class InventoryItem(Base):
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    category: Mapped[str | None] = mapped_column(Text)
    quantity_label: Mapped[str] = mapped_column(Text, nullable=False, default="")
    needs_purchase: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Pizza(Base):
    __tablename__ = "pizzas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    ingredients: Mapped[str | None] = mapped_column(Text)
    price_xl: Mapped[int | None] = mapped_column(Integer)
    price_medium: Mapped[int | None] = mapped_column(Integer)
    price_small: Mapped[int | None] = mapped_column(Integer)


class Extra(Base):
    __tablename__ = "extras"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    price_xl: Mapped[int | None] = mapped_column(Integer)
    price_medium: Mapped[int | None] = mapped_column(Integer)
    price_single: Mapped[int | None] = mapped_column(Integer)


class Sandwich(Base):
    __tablename__ = "sandwiches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    ingredients: Mapped[str | None] = mapped_column(Text)
    price: Mapped[int | None] = mapped_column(Integer)


class OtherProduct(Base):
    __tablename__ = "other_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    category: Mapped[str | None] = mapped_column(Text)
    price: Mapped[int | None] = mapped_column(Integer)
