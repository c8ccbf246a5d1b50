"""Notification sink that mirrors the live run notification to a webhook.

The relay on the other end renders it on the device. Action presses still come
back through the API, so listeners are handled by the in-memory sink.
"""

import logging

import httpx

from pacer.tracking.notifications import NotificationPayload
from pacer.tracking.sinks import InMemoryNotificationSink

logger = logging.getLogger(__name__)


class WebhookNotificationSink(InMemoryNotificationSink):
    def __init__(self, url: str, timeout: float = 10) -> None:
        super().__init__(permission_granted=True)
        self.url = url.rstrip("/")
        self.timeout = timeout

    def _notification_url(self, notification_id: str) -> str:
        return f"{self.url}/notifications/{notification_id}"

    async def show(self, notification_id: str, payload: NotificationPayload) -> None:
        await super().show(notification_id, payload)
        await self._put(notification_id, payload)

    async def update(self, notification_id: str, payload: NotificationPayload) -> None:
        await super().update(notification_id, payload)
        await self._put(notification_id, payload)

    async def dismiss(self, notification_id: str) -> None:
        await super().dismiss(notification_id)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.delete(self._notification_url(notification_id))
        # Already gone is fine.
        if response.status_code not in (200, 204, 404):
            logger.error(
                f"Notification webhook dismiss failed: {response.status_code} {response.text}"
            )
            response.raise_for_status()

    async def _put(self, notification_id: str, payload: NotificationPayload) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.put(
                self._notification_url(notification_id),
                json=payload.model_dump(),
            )
        if response.status_code not in (200, 204):
            logger.error(
                f"Notification webhook failed: {response.status_code} {response.text}"
            )
            response.raise_for_status()
