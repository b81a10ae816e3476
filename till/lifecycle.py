"""Start-up and shutdown sequencing for the till process."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Optional

from till.closing import ClosingSummary
from till.commands import LedgerCommands
from till.context import AppContext
from till.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)


class LifecycleOrchestrator:
    def __init__(self, context: AppContext) -> None:
        self.context = context
        self.commands = LedgerCommands(context)
        self._closing: Optional[asyncio.Future] = None
        self._saved_hooks: Optional[tuple] = None

    def start(self) -> None:
        self.install_exception_hooks()
        server = self.context.sync_server
        if server is None:
            return
        try:
            server.start()
        except ExternalServiceFailure as exc:
            # The till keeps working without the LAN API.
            logger.error("Inventory sync not started: %s", exc)
            self.context.shell.alert(f"Inventory sync is unavailable: {exc}")

    def _surface(self, what: str, exc: BaseException) -> None:
        logger.error("%s", what, exc_info=(type(exc), exc, exc.__traceback__))
        try:
            self.context.shell.alert(f"{what}: {exc}")
        except Exception:
            logger.exception("Could not show alert to the operator")

    def install_exception_hooks(self) -> None:
        if self._saved_hooks is not None:
            return
        self._saved_hooks = (sys.excepthook, threading.excepthook)

        def _sys_hook(exc_type, exc, tb) -> None:
            if issubclass(exc_type, KeyboardInterrupt):
                sys.__excepthook__(exc_type, exc, tb)
                return
            self._surface("Unexpected error", exc)

        def _thread_hook(args: threading.ExceptHookArgs) -> None:
            if args.exc_value is None or issubclass(args.exc_type, SystemExit):
                return
            name = args.thread.name if args.thread is not None else "worker"
            self._surface(f"Unexpected error in {name}", args.exc_value)

        sys.excepthook = _sys_hook
        threading.excepthook = _thread_hook

    def install_loop_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        def _loop_handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
            exc = context.get("exception")
            if exc is None:
                logger.error("Event loop error: %s", context.get("message"))
                return
            self._surface("Unexpected error", exc)

        loop.set_exception_handler(_loop_handler)

    def restore_exception_hooks(self) -> None:
        if self._saved_hooks is None:
            return
        sys.excepthook, threading.excepthook = self._saved_hooks
        self._saved_hooks = None

    async def request_close(self) -> Optional[ClosingSummary]:
        """Handle the operator's close request; returns once it is safe to exit.

        Repeated requests while closing wait on the same run.
        """
        if self._closing is None:
            self._closing = asyncio.ensure_future(self._close())
        return await self._closing

    async def _close(self) -> Optional[ClosingSummary]:
        shell = self.context.shell
        closing = self.context.closing
        summary: Optional[ClosingSummary] = None
        try:
            try:
                shell.show_closing()
            except Exception as exc:
                self._surface("Closing notice failed", exc)
            try:
                summary = await asyncio.to_thread(closing.archive_and_notify)
            except Exception as exc:
                self._surface("Daily report failed", exc)
            try:
                await asyncio.to_thread(closing.reset_ledger)
            except Exception as exc:
                self._surface("Ledger reset failed", exc)
        finally:
            try:
                self.context.close()
            except Exception as exc:
                self._surface("Shutdown cleanup failed", exc)
            self.restore_exception_hooks()
            shell.terminate()
        return summary
