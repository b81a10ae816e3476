"""Interfaces the ledger expects from its surroundings.

Window chrome, receipt layout and printer drivers live outside this package;
they only need to satisfy these shapes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Sequence

from till.schemas import InventoryItemOut, OrderDraft


class OperatorShell(Protocol):
    def notify(self, message: str) -> None:
        """Show a non-blocking message to the operator."""

    def alert(self, message: str) -> None:
        """Show an error the operator must see."""

    def show_closing(self) -> None:
        """Display the 'closing, please wait' indication."""

    def inventory_changed(self) -> None:
        """Ask the inventory view to reload."""

    def terminate(self) -> None:
        """Let the process exit."""


class DocumentRenderer(Protocol):
    def render(self, draft: OrderDraft, order_id: Optional[int] = None) -> Path: ...

    def render_shopping_list(self, items: Sequence[InventoryItemOut]) -> Path: ...


class PrintSink(Protocol):
    def print(self, document: Path, printer_name: str, timeout: float) -> None:
        """Raise on failure."""


class SpreadsheetWriter(Protocol):
    def write(self, rows: Sequence[dict], destination: Path) -> None: ...


class MailTransport(Protocol):
    def send(self, sender: str, recipient: str, subject: str, body: str, attachment: Path) -> None: ...


class SaveLocationPrompt(Protocol):
    def prompt_save_location(self, default_path: Path) -> Optional[Path]:
        """Return the chosen path, or None when the operator cancels."""
