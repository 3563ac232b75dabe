"""
Kvrocks Pub/Sub Notification Publisher

Channel format: notification:{kind}
Delivery is best effort; a failed publish is logged and dropped.
"""

import asyncio
from typing import Any, Dict, Set

import orjson

from src.platform.logging.loguru_io import Logger
from src.platform.state.key_str_generator import make_notification_channel
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher


class NotificationPublisherImpl(INotificationPublisher):
    def __init__(self) -> None:
        self._pending: Set[asyncio.Task] = set()

    async def publish(self, *, kind: str, payload: Dict[str, Any]) -> None:
        channel = make_notification_channel(kind=kind)
        try:
            receivers = await kvrocks_client.get_client().publish(channel, orjson.dumps(payload))
            Logger.base.debug(f'📡 [NOTIFY] {channel} -> {receivers} subscribers')
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFY] Publish to {channel} failed: {e}')

    def schedule(self, *, kind: str, payload: Dict[str, Any]) -> None:
        task = asyncio.create_task(self.publish(kind=kind, payload=payload))
        # Strong reference until done
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
