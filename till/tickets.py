"""Preview, confirm and cancel flow for printed tickets.

A ticket is rendered to a temporary document first. Nothing reaches the
ledger until the operator confirms; on confirm the order is saved before the
printer is tried, so a jammed printer never loses an order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from till.collaborators import DocumentRenderer, PrintSink
from till.errors import ExternalServiceFailure
from till.inventory import InventoryStore
from till.ledger import OrderLedger
from till.schemas import OrderDraft

logger = logging.getLogger(__name__)


@dataclass
class PendingTicket:
    draft: OrderDraft
    document: Path
    order_id: Optional[int] = None


@dataclass(frozen=True)
class PrintOutcome:
    order_id: int
    printed: bool
    message: str


def _discard(document: Path) -> None:
    try:
        document.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete temporary ticket %s: %s", document, exc)


class TicketDesk:
    def __init__(
        self,
        ledger: OrderLedger,
        inventory: InventoryStore,
        renderer: DocumentRenderer,
        printer: PrintSink,
        printer_name: str,
        print_timeout: float,
    ) -> None:
        self.ledger = ledger
        self.inventory = inventory
        self.renderer = renderer
        self.printer = printer
        self.printer_name = printer_name
        self.print_timeout = print_timeout

    def prepare(self, draft: OrderDraft, order_id: Optional[int] = None) -> PendingTicket:
        try:
            document = self.renderer.render(draft, order_id)
        except OSError as exc:
            raise ExternalServiceFailure(f"could not render ticket: {exc}") from exc
        return PendingTicket(draft=draft, document=document, order_id=order_id)

    def reprint(self, order_id: int) -> PendingTicket:
        record = self.ledger.get(order_id)
        return self.prepare(record.to_draft(), order_id=record.id)

    def confirm(self, ticket: PendingTicket) -> PrintOutcome:
        try:
            if ticket.order_id is None:
                order_id = self.ledger.create(ticket.draft)
            else:
                order_id = self.ledger.update(ticket.order_id, ticket.draft).id
            try:
                self._print(ticket.document)
            except ExternalServiceFailure as exc:
                logger.warning("Order #%s saved but not printed: %s", order_id, exc)
                return PrintOutcome(order_id, False, f"Order #{order_id} saved, but printing failed: {exc}")
            return PrintOutcome(order_id, True, f"Order #{order_id} saved and printed.")
        finally:
            _discard(ticket.document)

    def cancel(self, ticket: PendingTicket) -> None:
        _discard(ticket.document)
        logger.info("Ticket preview discarded: %s", ticket.document)

    def print_shopping_list(self) -> str:
        items = self.inventory.shopping_list()
        if not items:
            return "Nothing needs to be purchased."
        try:
            document = self.renderer.render_shopping_list(items)
        except OSError as exc:
            raise ExternalServiceFailure(f"could not render shopping list: {exc}") from exc
        try:
            self._print(document)
        finally:
            _discard(document)
        return f"Shopping list printed ({len(items)} items)."

    def _print(self, document: Path) -> None:
        try:
            self.printer.print(document, self.printer_name, self.print_timeout)
        except OSError as exc:
            raise ExternalServiceFailure(f"printer {self.printer_name}: {exc}") from exc
