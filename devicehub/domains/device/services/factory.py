"""
服務組裝

將 SQLModel 存儲庫、審計與通知接收端組裝為 DeviceLifecycleService。
Redis 不可用時故障通知退回到結構化日誌。
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import redis.asyncio as aioredis

from devicehub.core.config import FAULT_NOTIFY_CHANNEL, REDIS_URL
from devicehub.db.base import async_session_maker
from devicehub.domains.common.models.base_model import utc_now
from devicehub.domains.device.adapters.audit_sinks import (
    CompositeAuditSink,
    SQLModelAuditSink,
    StructlogAuditSink,
)
from devicehub.domains.device.adapters.notifiers import (
    LoggingFaultNotifier,
    RedisFaultNotifier,
)
from devicehub.domains.device.adapters.sqlmodel_device_repository import (
    SQLModelDeviceRepository,
)
from devicehub.domains.device.adapters.sqlmodel_fault_record_source import (
    SQLModelFaultRecordSource,
)
from devicehub.domains.device.services.device_service import DeviceLifecycleService

logger = logging.getLogger(__name__)


async def initialize_redis_client(
    redis_url: Optional[str] = REDIS_URL,
) -> Optional[aioredis.Redis]:
    """連線 Redis，失敗或未設定時回傳 None"""
    if not redis_url:
        logger.info("REDIS_URL not set, fault alerts will only be logged.")
        return None

    logger.info(f"Attempting to connect to Redis at {redis_url}")
    try:
        redis_client = aioredis.Redis.from_url(redis_url, encoding="utf-8")
        await redis_client.ping()
        logger.info("Successfully connected to Redis for fault alerts.")
        return redis_client
    except Exception as e:
        logger.error(
            f"Failed to connect to Redis: {e}. Fault alerts will only be logged."
        )
        return None


def create_device_service(
    session_factory=async_session_maker,
    redis_client: Optional[aioredis.Redis] = None,
    clock: Callable[[], datetime] = utc_now,
) -> DeviceLifecycleService:
    if redis_client is not None:
        notification_sink = RedisFaultNotifier(redis_client, FAULT_NOTIFY_CHANNEL)
    else:
        notification_sink = LoggingFaultNotifier()

    audit_sink = CompositeAuditSink(
        [SQLModelAuditSink(session_factory), StructlogAuditSink()]
    )
    return DeviceLifecycleService(
        device_repository=SQLModelDeviceRepository(session_factory),
        fault_record_source=SQLModelFaultRecordSource(session_factory),
        audit_sink=audit_sink,
        notification_sink=notification_sink,
        clock=clock,
    )
