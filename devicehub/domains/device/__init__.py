"""
設備領域模組

包含設備相關的模型、服務、儲存庫與審計/通知接收端。
主要處理設備的新增、狀態變更、故障標記、搜尋與統計分析。
"""

from devicehub.domains.device.models.device_model import (
    Device,
    DeviceBase,
    DeviceStatus,
    DeviceStatusAudit,
    FaultRecord,
)
from devicehub.domains.device.services.device_service import DeviceLifecycleService
from devicehub.domains.device.interfaces.device_repository import DeviceRepository
from devicehub.domains.device.interfaces.fault_record_source import FaultRecordSource
from devicehub.domains.device.interfaces.sinks import AuditSink, NotificationSink
