import json
import logging
from datetime import datetime

import structlog
from redis.asyncio import Redis as AsyncRedis

from devicehub.core.config import FAULT_NOTIFY_CHANNEL
from devicehub.domains.device.interfaces.sinks import NotificationSink
from devicehub.domains.device.models.device_model import Device
from devicehub.domains.device.models.results import FaultNotification

logger = logging.getLogger(__name__)
notify_logger = structlog.get_logger("devicehub.notify")


def build_notification(device: Device, reason: str, timestamp: datetime) -> FaultNotification:
    """device 為變更前的快照，其 status 即原狀態"""
    return FaultNotification(
        id=device.id,
        device_id=device.device_id,
        device_name=device.device_name,
        location=device.location,
        old_status=device.status,
        reason=reason,
        timestamp=timestamp,
    )


class LoggingFaultNotifier(NotificationSink):
    """以結構化日誌發出故障通知"""

    async def notify_fault(self, device: Device, reason: str, timestamp: datetime) -> None:
        notification = build_notification(device, reason, timestamp)
        notify_logger.warning(
            "device.fault_notified",
            device_id=notification.device_id,
            location=notification.location,
            old_status=notification.old_status,
            reason=notification.reason,
            message=notification.render(),
        )


class RedisFaultNotifier(NotificationSink):
    """透過 Redis pub/sub 發布故障通知"""

    def __init__(self, redis_client: AsyncRedis, channel: str = FAULT_NOTIFY_CHANNEL):
        self.redis_client = redis_client
        self.channel = channel

    async def notify_fault(self, device: Device, reason: str, timestamp: datetime) -> None:
        notification = build_notification(device, reason, timestamp)
        payload = json.dumps(notification.model_dump(mode="json"), ensure_ascii=False)
        receivers = await self.redis_client.publish(self.channel, payload)
        logger.info(
            f"Published fault alert for '{device.device_id}' to '{self.channel}' ({receivers} receivers)"
        )
