"""End-of-day pipeline: archive the day's report, mail it, then wipe the ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

from till.collaborators import MailTransport, OperatorShell
from till.config import Settings
from till.errors import ExternalServiceFailure, TransactionFailure
from till.ledger import OrderLedger
from till.reporting import ReportGenerator, ReportResult, ReportStatus, report_filename

logger = logging.getLogger(__name__)


def archive_path(folder: Path, day: date) -> Path:
    """First unused report name in the day's folder, so a second close keeps the first archive."""
    sequence = 1
    while (folder / report_filename(day, sequence)).exists():
        sequence += 1
    return folder / report_filename(day, sequence)


class StepStatus(str, Enum):
    ARCHIVED = "archived"
    EMAILED = "emailed"
    SKIPPED = "skipped"
    FAILED = "failed"
    NO_ORDERS = "no_orders"


@dataclass(frozen=True)
class StepOutcome:
    step: str
    status: StepStatus
    message: str


@dataclass
class ClosingSummary:
    steps: list[StepOutcome] = field(default_factory=list)
    report: Optional[ReportResult] = None

    def status_of(self, step: str) -> Optional[StepStatus]:
        for outcome in self.steps:
            if outcome.step == step:
                return outcome.status
        return None


class DailyClosingPipeline:
    def __init__(
        self,
        ledger: OrderLedger,
        reports: ReportGenerator,
        shell: OperatorShell,
        settings: Settings,
        mailer: Optional[MailTransport] = None,
    ) -> None:
        self.ledger = ledger
        self.reports = reports
        self.shell = shell
        self.settings = settings
        self.mailer = mailer

    def _record(self, summary: ClosingSummary, step: str, status: StepStatus, message: str) -> None:
        summary.steps.append(StepOutcome(step, status, message))
        if status is StepStatus.FAILED:
            logger.error("%s: %s", step, message)
            self.shell.alert(message)
        else:
            logger.info("%s: %s", step, message)
            self.shell.notify(message)

    def archive_and_notify(self) -> ClosingSummary:
        """Write today's report into the dated archive folder and mail it.

        The local file is the durable copy; mail is best effort and a failed
        send is reported without stopping the close.
        """
        summary = ClosingSummary()
        day = self.ledger.today()
        folder = self.settings.reports_dir / day.isoformat()
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._record(summary, "archive_folder", StepStatus.FAILED, f"Could not create archive folder {folder}: {exc}")

        destination = archive_path(folder, day)
        try:
            report = self.reports.generate(destination)
        except (ExternalServiceFailure, TransactionFailure) as exc:
            self._record(summary, "archive", StepStatus.FAILED, f"Daily report could not be archived: {exc}")
        else:
            summary.report = report
            if report.status is ReportStatus.NO_ORDERS:
                self._record(summary, "archive", StepStatus.NO_ORDERS, "No sales today; nothing to archive.")
                return summary
            self._record(summary, "archive", StepStatus.ARCHIVED, f"Daily report archived to {destination}")

        if self.mailer is None or not self.settings.mail_configured:
            self._record(summary, "email", StepStatus.SKIPPED, "Email not configured; report kept locally only.")
        elif summary.report is None or summary.report.status is not ReportStatus.WRITTEN:
            self._record(summary, "email", StepStatus.SKIPPED, "No report file was produced; nothing to email.")
        else:
            self._send_report(summary, summary.report.path, day)
        return summary

    def _send_report(self, summary: ClosingSummary, attachment, day) -> None:
        total = summary.report.total if summary.report else 0
        subject = f"{self.settings.business_name} - sales report {day.isoformat()}"
        body = f"Attached is the sales report for {day.isoformat()}.\nTotal sales: {total}\n"
        try:
            self.mailer.send(
                self.settings.mail_sender,
                self.settings.mail_recipient,
                subject,
                body,
                attachment,
            )
        except ExternalServiceFailure as exc:
            self._record(summary, "email", StepStatus.FAILED, f"Report could not be emailed: {exc}")
        else:
            self._record(summary, "email", StepStatus.EMAILED, f"Report emailed to {self.settings.mail_recipient}")

    def reset_ledger(self) -> int:
        """Remove every order and rewind the id counter for the next business day.

        Must only run once archive_and_notify has finished reading the rows.
        """
        removed = self.ledger.clear_all()
        self.shell.notify(f"Ledger reset for the next business day ({removed} orders cleared).")
        return removed
