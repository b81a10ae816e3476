"""Async commands the operator UI calls.

Every command runs its blocking store work on a worker thread and answers
with an Outcome instead of raising, so the UI only has to show the message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from till.context import AppContext
from till.errors import ExternalServiceFailure, TillError, TransactionFailure, ValidationFailure
from till.schemas import DeliveryStatus, InventoryPatch, OrderDraft, PaymentStatus, PriceUpdate
from till.tickets import PendingTicket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    success: bool
    message: str
    data: Any = None


def _failed(exc: TillError) -> Outcome:
    if isinstance(exc, TransactionFailure):
        logger.error("Store operation rolled back: %s", exc)
        return Outcome(False, f"Nothing was saved: {exc}")
    if isinstance(exc, ExternalServiceFailure):
        logger.error("External service failed: %s", exc)
    else:
        logger.info("Command refused: %s", exc)
    return Outcome(False, str(exc))


def _check_order(draft: OrderDraft) -> None:
    if not draft.customer_name.strip():
        raise ValidationFailure("Please enter the customer's name.")
    if not draft.items:
        raise ValidationFailure("An order needs at least one item.")
    if draft.payment_status is PaymentStatus.PAID and not (draft.payment_method or "").strip():
        raise ValidationFailure("Please choose a payment method.")


class LedgerCommands:
    def __init__(self, context: AppContext) -> None:
        self.context = context

    async def create_order(self, draft: OrderDraft) -> Outcome:
        try:
            _check_order(draft)
            order_id = await asyncio.to_thread(self.context.ledger.create, draft)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, f"Order #{order_id} saved.", order_id)

    async def update_order(self, order_id: int, draft: OrderDraft) -> Outcome:
        try:
            _check_order(draft)
            record = await asyncio.to_thread(self.context.ledger.update, order_id, draft)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, f"Order #{order_id} updated.", record)

    async def delete_order(self, order_id: int) -> Outcome:
        try:
            outcome = await asyncio.to_thread(self.context.ledger.delete, order_id)
        except TillError as exc:
            return _failed(exc)
        if not outcome.removed:
            return Outcome(False, f"Order #{order_id} not found.", outcome)
        return Outcome(True, f"Order #{order_id} deleted; {outcome.renumbered} orders renumbered.", outcome)

    async def set_delivery_status(self, order_id: int, status: DeliveryStatus) -> Outcome:
        try:
            changed = await asyncio.to_thread(self.context.ledger.set_delivery_status, order_id, status)
        except TillError as exc:
            return _failed(exc)
        if not changed:
            return Outcome(False, f"Order #{order_id} not found.")
        return Outcome(True, f"Order #{order_id} marked {status.value.lower()}.")

    async def set_payment_status(
        self, order_id: int, status: PaymentStatus, method: Optional[str] = None
    ) -> Outcome:
        try:
            changed = await asyncio.to_thread(self.context.ledger.set_payment_status, order_id, status, method)
        except TillError as exc:
            return _failed(exc)
        if not changed:
            return Outcome(False, f"Order #{order_id} not found.")
        return Outcome(True, f"Order #{order_id} marked {status.value.lower()}.")

    async def list_today_orders(self) -> Outcome:
        try:
            orders = await asyncio.to_thread(self.context.ledger.list_today)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, f"{len(orders)} orders today.", orders)

    async def generate_report(self) -> Outcome:
        """Write today's report where the operator chooses."""
        try:
            result = await asyncio.to_thread(self.context.reports.generate)
        except TillError as exc:
            return _failed(exc)
        return Outcome(result.success, result.message, result)

    async def list_products(self) -> Outcome:
        try:
            products = await asyncio.to_thread(self.context.catalog.list_products)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, "Catalog loaded.", products)

    async def update_prices(self, updates: Iterable[PriceUpdate]) -> Outcome:
        updates = list(updates)
        try:
            changed = await asyncio.to_thread(self.context.catalog.update_prices, updates)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, f"{changed} prices updated.", changed)

    async def list_inventory(self) -> Outcome:
        try:
            items = await asyncio.to_thread(self.context.inventory.list_items)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, f"{len(items)} inventory items.", items)

    async def update_inventory(self, patches: Iterable[InventoryPatch]) -> Outcome:
        patches = list(patches)
        try:
            result = await asyncio.to_thread(self.context.inventory.batch_update, patches)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, result.message, result)

    # Ticket flow; only available when a renderer and printer are wired in.

    def _desk(self):
        if self.context.tickets is None:
            raise ExternalServiceFailure("ticket printing is not configured")
        return self.context.tickets

    async def prepare_ticket(self, draft: OrderDraft, order_id: Optional[int] = None) -> Outcome:
        try:
            _check_order(draft)
            ticket = await asyncio.to_thread(self._desk().prepare, draft, order_id)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, "Ticket ready for preview.", ticket)

    async def reprint_order(self, order_id: int) -> Outcome:
        try:
            ticket = await asyncio.to_thread(self._desk().reprint, order_id)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, f"Ticket #{order_id} ready for preview.", ticket)

    async def confirm_ticket(self, ticket: PendingTicket) -> Outcome:
        try:
            printed = await asyncio.to_thread(self._desk().confirm, ticket)
        except TillError as exc:
            return _failed(exc)
        return Outcome(printed.printed, printed.message, printed.order_id)

    async def cancel_ticket(self, ticket: PendingTicket) -> Outcome:
        try:
            await asyncio.to_thread(self._desk().cancel, ticket)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, "Ticket discarded.")

    async def print_shopping_list(self) -> Outcome:
        try:
            message = await asyncio.to_thread(self._desk().print_shopping_list)
        except TillError as exc:
            return _failed(exc)
        return Outcome(True, message)
