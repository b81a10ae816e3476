"""Order ledger: the authoritative store of the current business day's tickets.

The order id doubles as the ticket number printed on receipts and read aloud
to customers, so deleting an order renumbers the rest of the day to keep the
sequence dense (1..N in creation order).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from till.db import reset_identity, transaction
from till.errors import OrderNotFound, ValidationFailure
from till.models import Order
from till.schemas import DeliveryStatus, OrderDraft, OrderRecord, PaymentStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class DeleteOutcome:
    removed: bool
    renumbered: int


def day_bounds(day: date) -> tuple[datetime, datetime]:
    starts_at = datetime.combine(day, time.min)
    return starts_at, starts_at + timedelta(days=1)


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _draft_values(draft: OrderDraft) -> dict[str, Any]:
    return {
        "customer_name": draft.customer_name,
        "customer_phone": draft.customer_phone,
        "order_type": draft.order_type.value,
        "items": [item.model_dump(mode="json") for item in draft.items],
        "total": draft.total,
        "delivery_type": draft.delivery_type.value,
        "delivery_time": draft.delivery_time,
        "payment_status": draft.payment_status.value,
        "payment_method": draft.payment_method,
    }


def _reinsert_values(row: dict[str, Any]) -> dict[str, Any]:
    values = dict(row)
    del values["id"]
    return values


class OrderLedger:
    def __init__(self, sessions: sessionmaker[Session], clock: Clock = datetime.now) -> None:
        self._sessions = sessions
        self._clock = clock

    def today(self) -> date:
        return self._clock().date()

    def _today_filter(self):
        starts_at, ends_at = day_bounds(self.today())
        return Order.created_at >= starts_at, Order.created_at < ends_at

    def create(self, draft: OrderDraft) -> int:
        values = _draft_values(draft)
        values["created_at"] = _local_naive(draft.created_at or self._clock())
        with transaction(self._sessions) as session:
            order = Order(**values)
            session.add(order)
            session.flush()
            order_id = order.id
        logger.info("Order #%s created for %s, total %s", order_id, draft.customer_name, draft.total)
        return order_id

    def get(self, order_id: int) -> OrderRecord:
        with transaction(self._sessions) as session:
            order = session.get(Order, order_id)
            if order is None:
                raise OrderNotFound(order_id)
            return OrderRecord.model_validate(order)

    def update(self, order_id: int, draft: OrderDraft) -> OrderRecord:
        # created_at is kept: it decides which day the order belongs to and
        # the order's place in the renumbering sequence.
        with transaction(self._sessions) as session:
            result = session.execute(
                update(Order).where(Order.id == order_id).values(**_draft_values(draft))
            )
            if result.rowcount == 0:
                raise OrderNotFound(order_id)
            record = OrderRecord.model_validate(session.get(Order, order_id))
        logger.info("Order #%s updated", order_id)
        return record

    def delete(self, order_id: int) -> DeleteOutcome:
        """Delete one order and renumber the rest of today's orders from 1.

        Runs as a single transaction: drop the target, read the surviving
        same-day rows oldest-first, delete them, rewind the id counter and
        insert them again in the same order. Any failure rolls the whole
        thing back.
        """
        same_day = self._today_filter()
        with transaction(self._sessions) as session:
            removed = session.execute(delete(Order).where(Order.id == order_id)).rowcount > 0
            survivors = [
                dict(row)
                for row in session.execute(
                    select(Order.__table__).where(*same_day).order_by(Order.id.asc())
                ).mappings()
            ]
            session.execute(delete(Order).where(*same_day))
            reset_identity(session, Order.__tablename__)
            for row in survivors:
                session.execute(insert(Order).values(**_reinsert_values(row)))
        if removed:
            logger.info("Order #%s deleted, %s orders renumbered", order_id, len(survivors))
        else:
            logger.warning("Order #%s not found; %s orders renumbered anyway", order_id, len(survivors))
        return DeleteOutcome(removed=removed, renumbered=len(survivors))

    def set_delivery_status(self, order_id: int, status: DeliveryStatus) -> bool:
        with transaction(self._sessions) as session:
            result = session.execute(
                update(Order).where(Order.id == order_id).values(delivery_status=status.value)
            )
            affected = result.rowcount > 0
        logger.info("Order #%s delivery status -> %s (affected=%s)", order_id, status.value, affected)
        return affected

    def set_payment_status(
        self, order_id: int, status: PaymentStatus, method: Optional[str] = None
    ) -> bool:
        if status is PaymentStatus.PAID:
            method = (method or "").strip()
            if not method:
                raise ValidationFailure("a payment method is required to mark an order as paid")
        else:
            method = None
        with transaction(self._sessions) as session:
            result = session.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(payment_status=status.value, payment_method=method)
            )
            affected = result.rowcount > 0
        logger.info("Order #%s payment status -> %s (%s, affected=%s)", order_id, status.value, method, affected)
        return affected

    def list_today(self, newest_first: bool = True) -> list[OrderRecord]:
        ordering = Order.id.desc() if newest_first else Order.id.asc()
        with transaction(self._sessions) as session:
            orders = session.scalars(select(Order).where(*self._today_filter()).order_by(ordering)).all()
            return [OrderRecord.model_validate(order) for order in orders]

    def clear_all(self) -> int:
        with transaction(self._sessions) as session:
            removed = session.execute(delete(Order)).rowcount
            reset_identity(session, Order.__tablename__)
        logger.info("Ledger cleared: %s orders removed, id counter reset", removed)
        return removed
