import logging
from datetime import datetime
from typing import Iterable, Optional

import structlog

from devicehub.db.base import async_session_maker
from devicehub.domains.device.interfaces.sinks import AuditSink
from devicehub.domains.device.models.device_model import DeviceStatusAudit
from devicehub.domains.device.models.results import StatusChange

logger = logging.getLogger(__name__)
audit_logger = structlog.get_logger("devicehub.audit")


class StructlogAuditSink(AuditSink):
    """將狀態變更寫成結構化日誌"""

    async def record(
        self,
        device_id: str,
        old_status: Optional[str],
        new_status: str,
        reason: Optional[str],
        timestamp: datetime,
    ) -> None:
        change = StatusChange(
            device_id=device_id,
            old_status=old_status,
            new_status=new_status,
            reason=reason,
            timestamp=timestamp,
        )
        audit_logger.info("device.status_changed", **change.model_dump(mode="json"))


class SQLModelAuditSink(AuditSink):
    """將狀態變更持久化到 device_status_audit 表"""

    def __init__(self, session_factory=async_session_maker):
        self._session_factory = session_factory

    async def record(
        self,
        device_id: str,
        old_status: Optional[str],
        new_status: str,
        reason: Optional[str],
        timestamp: datetime,
    ) -> None:
        entry = DeviceStatusAudit(
            device_id=device_id,
            old_status=old_status,
            new_status=new_status,
            reason=reason,
            changed_at=timestamp,
        )
        async with self._session_factory() as session:
            try:
                session.add(entry)
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error(
                    f"Error persisting status audit for '{device_id}': {e}",
                    exc_info=True,
                )
                raise


class CompositeAuditSink(AuditSink):
    """依序寫入多個審計接收端"""

    def __init__(self, sinks: Iterable[AuditSink]):
        self.sinks = list(sinks)

    async def record(self, device_id, old_status, new_status, reason, timestamp) -> None:
        for sink in self.sinks:
            await sink.record(device_id, old_status, new_status, reason, timestamp)
