from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from devicehub.domains.device.models.device_model import Device


class AuditSink(ABC):
    """狀態變更審計接口，必須在 change_status 回報成功前同步呼叫"""

    @abstractmethod
    async def record(
        self,
        device_id: str,
        old_status: Optional[str],
        new_status: str,
        reason: Optional[str],
        timestamp: datetime,
    ) -> None:
        pass


class NotificationSink(ABC):
    """故障通知接口，失敗不影響觸發它的操作"""

    @abstractmethod
    async def notify_fault(
        self, device: Device, reason: str, timestamp: datetime
    ) -> None:
        pass
