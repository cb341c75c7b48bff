"""
各項操作的強型別結果結構

取代原本以字串為鍵的混合型別字典。計數欄位一律為 int，
平均值為 float。
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import Field

from devicehub.domains.common.models.base_model import ValueObject
from devicehub.domains.device.models.device_model import Device


class StatusCount(ValueObject):
    status: str
    count: int


class Statistics(ValueObject):
    """設備總覽統計"""

    total_devices: int
    status_distribution: List[StatusCount] = Field(default_factory=list)
    online_rate: str = Field(..., description="在線率，如 '66.67%'")
    last_update_time: datetime


class WarrantyAlert(ValueObject):
    """保修即將到期的設備"""

    device_id: str
    device_name: str
    device_type: str
    branch: Optional[str] = None
    install_date: date
    warranty_period: int
    warranty_end_date: date
    days_remaining: int


class FaultCodeStat(ValueObject):
    fault_code: str
    fault_count: int
    avg_fix_time_minutes: float = 0.0


class FaultAnalysis(ValueObject):
    """故障分析與整體 MTTR"""

    fault_analysis: List[FaultCodeStat] = Field(default_factory=list)
    total_faults: int
    overall_mttr: str = Field(..., description="如 '12.5 minutes'，無資料時為哨兵字串")
    overall_mttr_minutes: Optional[float] = None


class BranchStat(ValueObject):
    branch: Optional[str] = None
    total: int
    online: int


class BranchHealth(ValueObject):
    """分行健康度統計"""

    branch_stats: List[BranchStat] = Field(default_factory=list)
    overall_online_rate: str
    timestamp: datetime


class SearchResult(ValueObject):
    """搜尋結果，附帶實際套用的搜尋條件"""

    devices: List[Device] = Field(default_factory=list)
    total: int
    search_params: Dict[str, str] = Field(default_factory=dict)


class StatusChange(ValueObject):
    """狀態變更審計內容"""

    device_id: str
    old_status: Optional[str] = None
    new_status: str
    reason: Optional[str] = None
    timestamp: datetime


class FaultNotification(ValueObject):
    """故障通知內容"""

    id: Optional[int] = None
    device_id: str
    device_name: str
    location: Optional[str] = None
    old_status: Optional[str] = None
    reason: str
    timestamp: datetime

    def render(self) -> str:
        """組成通知文字"""
        return (
            "[Bank Device Fault Alert]\n"
            f"Device: {self.device_name} ({self.device_id})\n"
            f"Location: {self.location}\n"
            f"Status: {self.old_status} -> FAULT\n"
            f"Reason: {self.reason}\n"
            f"Time: {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}"
        )
