from __future__ import annotations

import logging
import socket
from typing import Optional

from zeroconf import ServiceInfo, Zeroconf

logger = logging.getLogger(__name__)


def lan_address() -> str:
    # No packet is sent; connecting a UDP socket only picks the outbound interface.
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        probe.connect(("10.255.255.255", 1))
        return probe.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        probe.close()


class ServiceAdvertiser:
    """Announces the inventory API on the LAN so peers can find it by name."""

    def __init__(self, name: str, service_type: str = "_http._tcp.local.", properties: Optional[dict] = None) -> None:
        self.name = name
        self.service_type = service_type
        self.properties = properties or {"path": "/inventory"}
        self._zeroconf: Optional[Zeroconf] = None
        self._info: Optional[ServiceInfo] = None

    @property
    def active(self) -> bool:
        return self._zeroconf is not None

    def start(self, port: int, address: Optional[str] = None) -> None:
        if self._zeroconf is not None:
            return
        address = address or lan_address()
        host = socket.gethostname().split(".")[0] or "till"
        info = ServiceInfo(
            self.service_type,
            f"{self.name}.{self.service_type}",
            addresses=[socket.inet_aton(address)],
            port=port,
            properties=self.properties,
            server=f"{host}.local.",
        )
        zeroconf = Zeroconf()
        try:
            zeroconf.register_service(info)
        except Exception:
            zeroconf.close()
            raise
        self._zeroconf, self._info = zeroconf, info
        logger.info("Advertising %r on %s:%s", self.name, address, port)

    def stop(self) -> None:
        if self._zeroconf is None:
            return
        zeroconf, info = self._zeroconf, self._info
        self._zeroconf, self._info = None, None
        try:
            if info is not None:
                zeroconf.unregister_service(info)
        finally:
            zeroconf.close()
        logger.info("Stopped advertising %r", self.name)
