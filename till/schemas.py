"""Pydantic shapes exchanged between the UI shell, the ledger and the sync API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OrderType(str, Enum):
    DINE_IN = "Dine in"
    TAKEAWAY = "Takeaway"


class DeliveryType(str, Enum):
    DELAYED = "Delayed"
    SCHEDULED = "Scheduled"


class PaymentStatus(str, Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"


class DeliveryStatus(str, Enum):
    IN_PREPARATION = "In preparation"
    DELIVERED = "Delivered"


class CatalogTable(str, Enum):
    PIZZAS = "pizzas"
    EXTRAS = "extras"
    SANDWICHES = "sandwiches"
    OTHER_PRODUCTS = "other_products"


class ExtraRef(BaseModel):
    id: int
    name: str


class OrderItem(BaseModel):
    name: str
    price: int = Field(ge=0)
    size: Optional[str] = None
    extras: list[ExtraRef] = Field(default_factory=list)
    notes: str = ""


class OrderDraft(BaseModel):
    """Everything the operator fills in for a ticket, before it has an id."""

    model_config = {
        "json_schema_extra": {
            "example": {
                "customer_name": "Ana",
                "customer_phone": "+56 9 1234 5678",
                "order_type": "Takeaway",
                "items": [
                    {"name": "M - Napolitana", "price": 10500, "size": "medium", "extras": [], "notes": ""},
                    {"name": "Bebida lata", "price": 1500},
                ],
                "delivery_type": "Delayed",
                "delivery_time": "20:45",
                "payment_status": "Paid",
                "payment_method": "Card",
            }
        }
    }

    customer_name: str = ""
    customer_phone: str = ""
    order_type: OrderType = OrderType.TAKEAWAY
    items: list[OrderItem] = Field(default_factory=list)
    total: Optional[int] = None
    created_at: Optional[datetime] = None
    delivery_type: DeliveryType = DeliveryType.DELAYED
    delivery_time: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_method: Optional[str] = None

    @model_validator(mode="after")
    def _check_total(self) -> OrderDraft:
        items_total = sum(item.price for item in self.items)
        if self.total is None:
            self.total = items_total
        elif self.total != items_total:
            raise ValueError(f"total {self.total} does not match item prices ({items_total})")
        if self.payment_status is PaymentStatus.UNPAID:
            self.payment_method = None
        return self


class OrderRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_phone: str
    order_type: OrderType
    items: list[OrderItem]
    total: int
    created_at: datetime
    delivery_type: DeliveryType
    delivery_time: Optional[str] = None
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    delivery_status: DeliveryStatus

    def to_draft(self) -> OrderDraft:
        return OrderDraft(
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            order_type=self.order_type,
            items=self.items,
            total=self.total,
            created_at=self.created_at,
            delivery_type=self.delivery_type,
            delivery_time=self.delivery_time,
            payment_status=self.payment_status,
            payment_method=self.payment_method,
        )


class InventoryItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: Optional[str] = None
    quantity_label: str
    needs_purchase: bool


class InventoryItemCreate(BaseModel):
    name: str
    category: Optional[str] = None
    quantity_label: str = ""
    needs_purchase: bool = False


class InventoryPatch(BaseModel):
    model_config = {"json_schema_extra": {"example": {"id": 4, "quantity_label": "half a bag", "needs_purchase": True}}}

    id: int
    quantity_label: Optional[str] = None
    needs_purchase: Optional[bool] = None

    @property
    def is_empty(self) -> bool:
        return self.quantity_label is None and self.needs_purchase is None


class PriceUpdate(BaseModel):
    model_config = {"json_schema_extra": {"example": {"table": "pizzas", "item_id": 12, "column": "price_xl", "price": 14900}}}

    table: CatalogTable
    item_id: int
    column: str
    price: int = Field(ge=0)


class UpdateResponse(BaseModel):
    success: bool
    message: str
