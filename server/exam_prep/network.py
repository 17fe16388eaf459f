"""
Network status tracking for the question bank client.
"""
import logging
import time
from typing import Callable, Optional

import httpx

from exam_prep.config import settings

logger = logging.getLogger(__name__)

# How long `was_offline` stays set after connectivity returns
RECOVERY_WINDOW_SECONDS = 15.0


class NetworkStatus:
    """
    Online/offline state with a short "just recovered" window.

    State changes come from `set_online` (explicit signals) or `probe`
    (an HTTP reachability check).
    """

    def __init__(self, online: bool = True, clock: Callable[[], float] = time.monotonic,
                 probe_url: Optional[str] = None):
        self._clock = clock
        self._online = online
        self._recovered_at: Optional[float] = None
        self.last_status_change = clock()
        self.probe_url = probe_url or settings.network_probe_url

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def was_offline(self) -> bool:
        """True for a short while after coming back online."""
        if not self._online or self._recovered_at is None:
            return False
        return self._clock() - self._recovered_at < RECOVERY_WINDOW_SECONDS

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        now = self._clock()
        logger.info("🌐 Network status changed: %s", "Online" if online else "Offline")
        if online:
            self._recovered_at = now
        self._online = online
        self.last_status_change = now

    async def probe(self, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
        """Check reachability of the probe URL and update the state."""
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                await client.head(self.probe_url)
            online = True
        except httpx.TransportError as e:
            logger.warning("📡 Network probe failed: %s", e)
            online = False
        self.set_online(online)
        return online
