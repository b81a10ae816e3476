from __future__ import annotations

import asyncio
import logging
import signal

from till.config import Settings, settings
from till.context import AppContext
from till.lifecycle import LifecycleOrchestrator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


class ConsoleShell:
    """Operator shell for running the till headless; every message goes to the log."""

    def __init__(self) -> None:
        self.terminated = False

    def notify(self, message: str) -> None:
        logger.info("%s", message)

    def alert(self, message: str) -> None:
        logger.warning("%s", message)

    def show_closing(self) -> None:
        logger.info("Closing, please wait...")

    def inventory_changed(self) -> None:
        logger.info("Inventory changed by a remote client")

    def terminate(self) -> None:
        self.terminated = True
        logger.info("Till stopped")


async def run(settings: Settings) -> None:
    """Run the till headless until SIGINT or SIGTERM closes the day.

    A UI shell drives the ledger through `orchestrator.commands`.
    """
    context = AppContext.create(settings, ConsoleShell())
    orchestrator = LifecycleOrchestrator(context)
    orchestrator.start()

    loop = asyncio.get_running_loop()
    orchestrator.install_loop_handler(loop)
    close_requested = asyncio.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, close_requested.set)
        except NotImplementedError:
            signal.signal(signum, lambda *_: loop.call_soon_threadsafe(close_requested.set))

    logger.info("Till running; press Ctrl+C to close the day")
    await close_requested.wait()
    await orchestrator.request_close()


def main() -> None:
    configure_logging(settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
