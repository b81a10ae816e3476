from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from till.api import create_api
from till.catalog import Catalog
from till.closing import DailyClosingPipeline
from till.collaborators import (
    DocumentRenderer,
    MailTransport,
    OperatorShell,
    PrintSink,
    SaveLocationPrompt,
    SpreadsheetWriter,
)
from till.config import Settings
from till.db import create_schema, create_store_engine, make_session_factory, prepare_data_file
from till.discovery import ServiceAdvertiser
from till.inventory import InventoryStore
from till.ledger import OrderLedger
from till.mailer import SmtpMailTransport
from till.reporting import REPORT_COLUMN_WIDTHS, ReportGenerator
from till.server import InventorySyncServer
from till.spreadsheet import XlsxSpreadsheetWriter
from till.tickets import TicketDesk

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything one running till needs, created at startup and passed around."""

    settings: Settings
    engine: Engine
    sessions: sessionmaker[Session]
    shell: OperatorShell
    ledger: OrderLedger
    inventory: InventoryStore
    catalog: Catalog
    reports: ReportGenerator
    closing: DailyClosingPipeline
    tickets: Optional[TicketDesk] = None
    sync_server: Optional[InventorySyncServer] = None
    closed: bool = field(default=False, init=False)

    @classmethod
    def create(
        cls,
        settings: Settings,
        shell: OperatorShell,
        *,
        renderer: Optional[DocumentRenderer] = None,
        printer: Optional[PrintSink] = None,
        spreadsheet: Optional[SpreadsheetWriter] = None,
        mailer: Optional[MailTransport] = None,
        prompt: Optional[SaveLocationPrompt] = None,
        advertiser: Optional[ServiceAdvertiser] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> AppContext:
        prepare_data_file(settings)
        engine = create_store_engine(settings)
        create_schema(engine)
        sessions = make_session_factory(engine)

        ledger = OrderLedger(sessions, clock)
        inventory = InventoryStore(sessions)
        if spreadsheet is None:
            spreadsheet = XlsxSpreadsheetWriter(column_widths=REPORT_COLUMN_WIDTHS)
        if mailer is None and settings.mail_configured:
            mailer = SmtpMailTransport.from_settings(settings)
        reports = ReportGenerator(ledger, spreadsheet, prompt, settings.documents_dir)
        closing = DailyClosingPipeline(ledger, reports, shell, settings, mailer)

        tickets = None
        if renderer is not None and printer is not None:
            tickets = TicketDesk(ledger, inventory, renderer, printer, settings.printer_name, settings.print_timeout)

        sync_server = None
        if settings.api_enabled:
            if advertiser is None:
                advertiser = ServiceAdvertiser(settings.service_name, settings.service_type)
            sync_server = InventorySyncServer(
                create_api(inventory, shell), settings.api_host, settings.api_port, advertiser
            )

        logger.info("Till context ready, data file %s", settings.database_path)
        return cls(
            settings=settings,
            engine=engine,
            sessions=sessions,
            shell=shell,
            ledger=ledger,
            inventory=inventory,
            catalog=Catalog(sessions),
            reports=reports,
            closing=closing,
            tickets=tickets,
            sync_server=sync_server,
        )

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.sync_server is not None:
            self.sync_server.stop()
        self.engine.dispose()
        logger.info("Till context closed")
