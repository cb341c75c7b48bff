import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from devicehub.core.config import WARRANTY_ALERT_DAYS
from devicehub.domains.common.exceptions import (
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from devicehub.domains.common.models.base_model import utc_now
from devicehub.domains.device.interfaces.device_repository import DeviceRepository
from devicehub.domains.device.interfaces.fault_record_source import FaultRecordSource
from devicehub.domains.device.interfaces.sinks import AuditSink, NotificationSink
from devicehub.domains.device.models.device_model import Device, DeviceStatus
from devicehub.domains.device.models.dto import DeviceCreate, DeviceUpdate
from devicehub.domains.device.models.results import (
    BranchHealth,
    FaultAnalysis,
    SearchResult,
    Statistics,
    WarrantyAlert,
)
from devicehub.domains.device.services import aggregation
from devicehub.domains.device.services.search import search_devices
from devicehub.domains.device.services.validation import (
    parse_status,
    validate_for_create,
)

logger = logging.getLogger(__name__)


class _LockEntry:
    """單一設備 id 的鎖與目前持有或等待它的呼叫數"""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class DeviceLifecycleService:
    """設備生命週期服務，實現設備相關的業務規則

    讀改寫操作（狀態變更、故障標記、更新、刪除）以設備 id 為單位串行化，
    守衛檢查與寫入之間不會被同一 id 的其他呼叫插入。
    """

    def __init__(
        self,
        device_repository: DeviceRepository,
        fault_record_source: FaultRecordSource,
        audit_sink: AuditSink,
        notification_sink: NotificationSink,
        clock: Callable[[], datetime] = utc_now,
        warranty_alert_days: int = WARRANTY_ALERT_DAYS,
    ):
        self.device_repository = device_repository
        self.fault_record_source = fault_record_source
        self.audit_sink = audit_sink
        self.notification_sink = notification_sink
        self.clock = clock
        self.warranty_alert_days = warranty_alert_days
        self._locks: Dict[int, _LockEntry] = {}

    @asynccontextmanager
    async def _device_lock(self, id: int):
        """取得設備 id 的鎖；最後一個持有或等待者離開時移除該項"""
        entry = self._locks.get(id)
        if entry is None:
            entry = self._locks[id] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[id]

    # -------- 查詢 --------

    async def get_all_devices(self) -> List[Device]:
        return await self.device_repository.select_all()

    async def get_devices_by_status(self, status: Optional[str]) -> List[Device]:
        """根據狀態查詢，空白狀態回傳空列表"""
        if status is None or not status.strip():
            return []
        return await self.device_repository.select_by_status(parse_status(status).value)

    async def get_device_by_id(self, id: Optional[int]) -> Device:
        """根據 ID 獲取設備，如果不存在則拋出 NotFoundError"""
        if id is None or id <= 0:
            raise ValidationError(f"Invalid device id: {id}")
        device = await self.device_repository.select_by_id(id)
        if device is None:
            logger.warning(f"Device with ID {id} not found.")
            raise NotFoundError(f"Device not found, id: {id}")
        return device

    async def get_device_by_device_id(self, device_id: Optional[str]) -> Device:
        if device_id is None or not device_id.strip():
            raise ValidationError("device_id must not be empty")
        device = await self.device_repository.select_by_device_id(device_id)
        if device is None:
            logger.warning(f"Device with device_id '{device_id}' not found.")
            raise NotFoundError(f"Device not found, device_id: {device_id}")
        return device

    async def get_devices_by_branch(self, branch: Optional[str]) -> List[Device]:
        """分行模糊查詢，空白分行回傳空列表"""
        if branch is None or not branch.strip():
            return []
        return await self.device_repository.select_by_branch(branch.strip())

    async def get_devices_by_type(self, device_type: Optional[str]) -> List[Device]:
        if device_type is None or not device_type.strip():
            return []
        return await self.device_repository.select_by_device_type(device_type.strip())

    async def search_devices(
        self,
        keyword: Optional[str] = None,
        device_type: Optional[str] = None,
        branch: Optional[str] = None,
    ) -> SearchResult:
        devices = await self.device_repository.select_all()
        result = search_devices(devices, keyword, device_type, branch)
        logger.info(
            f"Device search matched {result.total}/{len(devices)} (params={result.search_params})"
        )
        return result

    # -------- 設備管理 --------

    async def add_device(self, device_in: DeviceCreate) -> Device:
        """創建新設備，deviceId 已存在時拋出 ConflictError"""
        device_in = validate_for_create(device_in)

        existing = await self.device_repository.select_by_device_id(device_in.device_id)
        if existing is not None:
            logger.warning(f"Device '{device_in.device_id}' already exists.")
            raise ConflictError(f"Device already exists, device_id: {device_in.device_id}")

        now = self.clock()
        device = Device(**device_in.model_dump(), create_time=now, update_time=now)
        created = await self.device_repository.insert(device)
        logger.info(f"Added device '{created.device_id}' with ID {created.id}")
        return created

    async def update_device(self, id: int, device_in: DeviceUpdate) -> Device:
        """更新設備描述性欄位，deviceId 不允許修改"""
        async with self._device_lock(id):
            existing = await self.get_device_by_id(id)

            if device_in.device_id is not None and device_in.device_id != existing.device_id:
                raise ConflictError(
                    "device_id is immutable",
                    details={"current": existing.device_id, "requested": device_in.device_id},
                )

            patch = device_in.model_dump(exclude_none=True, exclude={"device_id"})
            patch["update_time"] = self.clock()
            affected = await self.device_repository.update(id, patch)
            if affected != 1:
                raise StoreError(f"Device update failed, id: {id}")

            return await self.get_device_by_id(id)

    async def delete_device(self, id: int) -> None:
        """刪除設備，在線設備需先下線"""
        async with self._device_lock(id):
            device = await self.get_device_by_id(id)

            if device.status == DeviceStatus.ONLINE.value:
                raise ConflictError(
                    "Online device cannot be deleted, take it offline first",
                    details={"id": id, "device_id": device.device_id},
                )

            affected = await self.device_repository.delete_by_id(id)
            if affected != 1:
                raise StoreError(f"Device delete failed, id: {id}")
            logger.info(f"Deleted device '{device.device_id}' (ID: {id})")

    # -------- 狀態機 --------

    async def change_status(
        self, id: int, new_status: str, reason: Optional[str] = None
    ) -> bool:
        async with self._device_lock(id):
            success, _, _ = await self._change_status(id, new_status, reason)
            return success

    async def _change_status(
        self, id: int, new_status: str, reason: Optional[str]
    ) -> Tuple[bool, Device, datetime]:
        """持有鎖時呼叫；回傳 (是否成功, 變更前的設備快照, 變更時間)

        審計寫入失敗時還原原狀態與更新時間後再拋出，狀態不會只變更一半。
        """
        device = await self.get_device_by_id(id)
        status = parse_status(new_status)

        now = self.clock()
        affected = await self.device_repository.update_status(id, status.value, now)
        if affected != 1:
            logger.error(
                f"Status write for device '{device.device_id}' affected {affected} rows."
            )
            return False, device, now

        try:
            await self.audit_sink.record(
                device.device_id, device.status, status.value, reason, now
            )
        except Exception:
            logger.error(
                f"Audit of status change for device '{device.device_id}' failed, restoring {device.status}.",
                exc_info=True,
            )
            await self.device_repository.update_status(
                id, device.status, device.update_time
            )
            raise
        return True, device, now

    async def mark_as_fault(self, id: int, reason: Optional[str]) -> bool:
        """標記設備為故障

        已是 FAULT 時不寫入、不審計、不通知，回傳 False。
        """
        if reason is None or not reason.strip():
            raise ValidationError("Fault reason must not be empty")

        async with self._device_lock(id):
            device = await self.get_device_by_id(id)
            if device.status == DeviceStatus.FAULT.value:
                logger.info(f"Device '{device.device_id}' is already FAULT, skip marking.")
                return False

            success, previous, changed_at = await self._change_status(
                id, DeviceStatus.FAULT.value, reason
            )
            if success:
                logger.info(
                    f"Device marked as FAULT [ID: {id}, name: {previous.device_name}], reason: {reason}"
                )
                await self._notify_fault(previous, reason, changed_at)
            return success

    async def _notify_fault(
        self, device: Device, reason: str, timestamp: datetime
    ) -> None:
        try:
            await self.notification_sink.notify_fault(device, reason, timestamp)
        except Exception as e:
            logger.warning(
                f"Fault notification for device '{device.device_id}' failed: {e}",
                exc_info=True,
            )

    # -------- 統計分析 --------

    async def get_statistics(self) -> Statistics:
        total = await self.device_repository.count_all()
        status_counts = await self.device_repository.count_by_status()
        return aggregation.build_statistics(total, status_counts, self.clock())

    async def get_warranty_alerts(self) -> List[WarrantyAlert]:
        devices = await self.device_repository.select_all()
        return aggregation.build_warranty_alerts(
            devices, self.clock().date(), self.warranty_alert_days
        )

    async def get_fault_analysis(self) -> FaultAnalysis:
        rows = await self.fault_record_source.get_fault_records_grouped_by_code()
        return aggregation.build_fault_analysis(rows)

    async def get_branch_health_stats(self) -> BranchHealth:
        rows = await self.device_repository.count_by_branch()
        return aggregation.build_branch_health(rows, self.clock())
