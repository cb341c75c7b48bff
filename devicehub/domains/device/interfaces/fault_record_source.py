from abc import ABC, abstractmethod
from typing import List

from devicehub.domains.device.models.results import FaultCodeStat


class FaultRecordSource(ABC):
    """故障記錄來源接口（唯讀）"""

    @abstractmethod
    async def get_fault_records_grouped_by_code(self) -> List[FaultCodeStat]:
        """按故障代碼分組，回傳次數與平均修復時間（分鐘）"""
        pass
