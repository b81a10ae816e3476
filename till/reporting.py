from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from till.collaborators import SaveLocationPrompt, SpreadsheetWriter
from till.ledger import OrderLedger
from till.schemas import OrderRecord

logger = logging.getLogger(__name__)

REPORT_COLUMN_WIDTHS = {
    "Order ID": 10,
    "Time": 12,
    "Customer": 25,
    "Order Type": 12,
    "Order Status": 15,
    "Payment Status": 15,
    "Payment Method": 15,
    "Product": 30,
    "Extras": 25,
    "Notes": 25,
    "Item Price": 12,
}

TOTAL_LABEL = "TOTAL SALES"


class ReportStatus(str, Enum):
    WRITTEN = "written"
    NO_ORDERS = "no_orders"
    CANCELLED = "cancelled"


@dataclass
class ReportResult:
    status: ReportStatus
    path: Optional[Path] = None
    rows: list[dict] = field(default_factory=list)
    total: int = 0

    @property
    def success(self) -> bool:
        return self.status is ReportStatus.WRITTEN

    @property
    def message(self) -> str:
        if self.status is ReportStatus.WRITTEN:
            return f"Report saved to {self.path}"
        if self.status is ReportStatus.NO_ORDERS:
            return "No orders saved today."
        return "Save cancelled by the operator."


def report_filename(day: date, sequence: int = 1) -> str:
    if sequence > 1:
        return f"sales-{day.isoformat()}-{sequence}.xlsx"
    return f"sales-{day.isoformat()}.xlsx"


def build_report_rows(orders: Iterable[OrderRecord]) -> tuple[list[dict], int]:
    """One row per order line, then a blank row and the day's grand total."""
    rows: list[dict] = []
    total = 0
    for order in orders:
        for item in order.items:
            rows.append(
                {
                    "Order ID": order.id,
                    "Time": order.created_at.strftime("%H:%M:%S"),
                    "Customer": order.customer_name,
                    "Order Type": order.order_type.value,
                    "Order Status": order.delivery_status.value,
                    "Payment Status": order.payment_status.value,
                    "Payment Method": order.payment_method or "",
                    "Product": item.name,
                    "Extras": ", ".join(extra.name for extra in item.extras),
                    "Notes": item.notes,
                    "Item Price": item.price,
                }
            )
        total += order.total
    rows.append({})
    rows.append({"Notes": TOTAL_LABEL, "Item Price": total})
    return rows, total


class ReportGenerator:
    def __init__(
        self,
        ledger: OrderLedger,
        writer: SpreadsheetWriter,
        prompt: Optional[SaveLocationPrompt],
        documents_dir: Path,
    ) -> None:
        self.ledger = ledger
        self.writer = writer
        self.prompt = prompt
        self.documents_dir = documents_dir

    def generate(self, destination: Optional[Path] = None) -> ReportResult:
        orders = self.ledger.list_today(newest_first=False)
        if not orders:
            logger.info("No orders today; report not written")
            return ReportResult(ReportStatus.NO_ORDERS)

        rows, total = build_report_rows(orders)
        if destination is None:
            default_path = self.documents_dir / report_filename(self.ledger.today())
            if self.prompt is None:
                logger.warning("No save-location prompt available; report not written")
                return ReportResult(ReportStatus.CANCELLED, rows=rows, total=total)
            destination = self.prompt.prompt_save_location(default_path)
            if destination is None:
                return ReportResult(ReportStatus.CANCELLED, rows=rows, total=total)

        self.writer.write(rows, destination)
        logger.info("Report for %s orders (total %s) written to %s", len(orders), total, destination)
        return ReportResult(ReportStatus.WRITTEN, path=destination, rows=rows, total=total)
