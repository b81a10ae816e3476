from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import uvicorn
import zeroconf
from fastapi import FastAPI

from till.discovery import ServiceAdvertiser
from till.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)


class InventorySyncServer:
    """Runs the inventory API next to the till, on its own thread.

    The LAN advertisement goes up only once the socket is bound and comes
    down before the listener stops.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str,
        port: int,
        advertiser: Optional[ServiceAdvertiser] = None,
        startup_timeout: float = 10.0,
    ) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.advertiser = advertiser
        self.startup_timeout = startup_timeout
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> int:
        if self.running:
            return self.port
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_config=None, access_log=False)
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, name="inventory-sync", daemon=True)
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise ExternalServiceFailure(f"inventory sync could not listen on {self.host}:{self.port}")
            if time.monotonic() > deadline:
                self._server.should_exit = True
                raise ExternalServiceFailure("inventory sync listener did not start in time")
            time.sleep(0.05)

        self.port = self._bound_port()
        logger.info("Inventory sync listening on %s:%s", self.host, self.port)
        if self.advertiser is not None:
            try:
                self.advertiser.start(self.port)
            except (OSError, zeroconf.Error):
                # Peers can still reach the API by address.
                logger.warning("LAN advertisement failed; API reachable by address only", exc_info=True)
        return self.port

    def _bound_port(self) -> int:
        for listener in self._server.servers:
            for sock in listener.sockets:
                return sock.getsockname()[1]
        return self.port

    def stop(self) -> None:
        if self.advertiser is not None:
            self.advertiser.stop()
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=self.startup_timeout)
            if self._thread.is_alive():
                logger.warning("Inventory sync thread did not stop within %ss", self.startup_timeout)
        self._server, self._thread = None, None
        logger.info("Inventory sync stopped")
