import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx

from portal.core.config import settings

logger = logging.getLogger(__name__)

UnreadCallback = Callable[[int], Union[None, Awaitable[None]]]


class NotificationPoller:
    """Polls the admin notification endpoint for the unread count.

    A failed poll is logged and retried on the next tick; the previous count
    is kept.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        on_unread: Optional[UnreadCallback] = None,
        interval: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.on_unread = on_unread
        self.interval = interval if interval is not None else settings.NOTIFICATION_POLL_SECONDS
        self._transport = transport
        self.unread_count: Optional[int] = None

    async def poll_once(self) -> int:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=15.0, transport=self._transport) as client:
            response = await client.get(
                "/admin/notifications",
                params={"limit": 1},
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        response.raise_for_status()
        self.unread_count = int(response.json().get("unreadCount", 0))

        if self.on_unread is not None:
            result = self.on_unread(self.unread_count)
            if asyncio.iscoroutine(result):
                await result
        return self.unread_count

    async def run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await self.poll_once()
            except httpx.HTTPError as e:
                logger.warning(f"Notification poll failed: {e}")
            except ValueError as e:
                logger.warning(f"Notification poll returned an unreadable body: {e}")
            except Exception:
                logger.exception("Unread-count callback failed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
