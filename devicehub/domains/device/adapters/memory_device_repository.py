"""
記憶體存儲實現

以 dict 保存設備，所有讀寫都持有 asyncio.Lock；
讀取回傳副本，呼叫者修改物件不會影響存儲內容。
"""

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from devicehub.domains.common.exceptions import ConflictError
from devicehub.domains.device.interfaces.device_repository import DeviceRepository
from devicehub.domains.device.interfaces.fault_record_source import FaultRecordSource
from devicehub.domains.device.models.device_model import (
    Device,
    DeviceStatus,
    FaultRecord,
)
from devicehub.domains.device.models.results import (
    BranchStat,
    FaultCodeStat,
    StatusCount,
)

logger = logging.getLogger(__name__)


def _clone(device: Device) -> Device:
    return Device(**device.model_dump())


class InMemoryDeviceRepository(DeviceRepository):
    """記憶體設備存儲庫"""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._devices: Dict[int, Device] = {}
        self._next_id = 1

    async def insert(self, device: Device) -> Device:
        async with self._lock:
            if any(d.device_id == device.device_id for d in self._devices.values()):
                raise ConflictError(
                    f"Device already exists, device_id: {device.device_id}"
                )
            stored = _clone(device)
            stored.id = self._next_id
            self._next_id += 1
            self._devices[stored.id] = stored
            return _clone(stored)

    async def select_all(self) -> List[Device]:
        async with self._lock:
            devices = sorted(
                self._devices.values(),
                key=lambda d: (d.update_time is not None, d.update_time),
                reverse=True,
            )
            return [_clone(d) for d in devices]

    async def select_by_id(self, id: int) -> Optional[Device]:
        async with self._lock:
            device = self._devices.get(id)
            return _clone(device) if device is not None else None

    async def select_by_device_id(self, device_id: str) -> Optional[Device]:
        async with self._lock:
            for device in self._devices.values():
                if device.device_id == device_id:
                    return _clone(device)
            return None

    async def select_by_status(self, status: str) -> List[Device]:
        return await self._select(lambda d: d.status == status)

    async def select_by_branch(self, pattern: str) -> List[Device]:
        needle = pattern.lower()
        return await self._select(
            lambda d: d.branch is not None and needle in d.branch.lower()
        )

    async def select_by_device_type(self, device_type: str) -> List[Device]:
        return await self._select(lambda d: d.device_type == device_type)

    async def _select(self, predicate) -> List[Device]:
        async with self._lock:
            return [_clone(d) for d in self._devices.values() if predicate(d)]

    async def update(self, id: int, patch: Dict[str, Any]) -> int:
        async with self._lock:
            device = self._devices.get(id)
            if device is None:
                return 0
            for field, value in patch.items():
                if hasattr(device, field):
                    setattr(device, field, value)
            return 1

    async def update_status(self, id: int, status: str, update_time: datetime) -> int:
        return await self.update(id, {"status": status, "update_time": update_time})

    async def delete_by_id(self, id: int) -> int:
        async with self._lock:
            return 1 if self._devices.pop(id, None) is not None else 0

    async def count_all(self) -> int:
        async with self._lock:
            return len(self._devices)

    async def count_by_status(self) -> List[StatusCount]:
        async with self._lock:
            counts: Dict[str, int] = {}
            for device in self._devices.values():
                counts[device.status] = counts.get(device.status, 0) + 1
        return [StatusCount(status=s, count=c) for s, c in sorted(counts.items())]

    async def count_by_branch(self) -> List[BranchStat]:
        async with self._lock:
            totals: Dict[Optional[str], List[int]] = OrderedDict()
            for device in sorted(self._devices.values(), key=lambda d: d.branch or ""):
                entry = totals.setdefault(device.branch, [0, 0])
                entry[0] += 1
                if device.status == DeviceStatus.ONLINE.value:
                    entry[1] += 1
        return [
            BranchStat(branch=branch, total=total, online=online)
            for branch, (total, online) in totals.items()
        ]


class InMemoryFaultRecordSource(FaultRecordSource):
    """記憶體故障記錄來源"""

    def __init__(self, records: Iterable[FaultRecord] = ()):
        self._records: List[FaultRecord] = list(records)

    def add(self, record: FaultRecord) -> None:
        self._records.append(record)

    async def get_fault_records_grouped_by_code(self) -> List[FaultCodeStat]:
        grouped: Dict[str, List[FaultRecord]] = {}
        for record in self._records:
            grouped.setdefault(record.fault_code, []).append(record)

        stats = []
        for code in sorted(grouped):
            records = grouped[code]
            downtimes = [
                r.downtime_duration for r in records if r.downtime_duration is not None
            ]
            avg = sum(downtimes) / len(downtimes) if downtimes else 0.0
            stats.append(
                FaultCodeStat(
                    fault_code=code,
                    fault_count=len(records),
                    avg_fix_time_minutes=round(avg, 2),
                )
            )
        return stats
