from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from devicehub.domains.device.models.device_model import Device
from devicehub.domains.device.models.results import BranchStat, StatusCount


class DeviceRepository(ABC):
    """設備存儲庫接口，定義核心對設備數據的全部存取

    計數類方法一律回傳 int，由實作在邊界處正規化。
    寫入類方法回傳受影響筆數。
    """

    @abstractmethod
    async def insert(self, device: Device) -> Device:
        """新增設備，回傳帶有 id 的記錄；deviceId 重複時拋出 ConflictError"""
        pass

    @abstractmethod
    async def select_all(self) -> List[Device]:
        """獲取所有設備，按更新時間倒序"""
        pass

    @abstractmethod
    async def select_by_id(self, id: int) -> Optional[Device]:
        """根據 ID 獲取設備"""
        pass

    @abstractmethod
    async def select_by_device_id(self, device_id: str) -> Optional[Device]:
        """根據業務唯一標識獲取設備"""
        pass

    @abstractmethod
    async def select_by_status(self, status: str) -> List[Device]:
        """根據狀態獲取設備"""
        pass

    @abstractmethod
    async def select_by_branch(self, pattern: str) -> List[Device]:
        """分行名稱模糊查詢（不分大小寫）"""
        pass

    @abstractmethod
    async def select_by_device_type(self, device_type: str) -> List[Device]:
        """根據設備類型獲取設備"""
        pass

    @abstractmethod
    async def update(self, id: int, patch: Dict[str, Any]) -> int:
        """更新描述性欄位"""
        pass

    @abstractmethod
    async def update_status(self, id: int, status: str, update_time: datetime) -> int:
        """更新設備狀態"""
        pass

    @abstractmethod
    async def delete_by_id(self, id: int) -> int:
        """刪除設備"""
        pass

    @abstractmethod
    async def count_all(self) -> int:
        pass

    @abstractmethod
    async def count_by_status(self) -> List[StatusCount]:
        pass

    @abstractmethod
    async def count_by_branch(self) -> List[BranchStat]:
        """每個分行的設備總數與在線數"""
        pass
