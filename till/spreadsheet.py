from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from till.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)


class XlsxSpreadsheetWriter:
    """Writes a list of dict rows to a single-sheet workbook, keys as headers."""

    def __init__(self, sheet_title: str = "Daily sales", column_widths: Optional[Mapping[str, int]] = None) -> None:
        self.sheet_title = sheet_title
        self.column_widths = dict(column_widths or {})

    def write(self, rows: Sequence[dict], destination: Path) -> None:
        headers: list[str] = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_title
        sheet.append(headers)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in rows:
            sheet.append([row.get(header) for header in headers])
        for index, header in enumerate(headers, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = self.column_widths.get(header, 15)

        try:
            workbook.save(destination)
        except OSError as exc:
            raise ExternalServiceFailure(f"could not write {destination}: {exc}") from exc
        logger.info("Wrote %s rows to %s", len(rows), destination)
