"""
統計聚合引擎

純函數，只讀取存儲層回傳的快照：
- 設備總覽與在線率
- 保修到期預警
- 故障代碼分析與加權 MTTR
- 分行健康度
"""

import calendar
from datetime import date, datetime
from typing import Iterable, List, Optional

from devicehub.domains.device.models.device_model import Device, DeviceStatus
from devicehub.domains.device.models.results import (
    BranchHealth,
    BranchStat,
    FaultAnalysis,
    FaultCodeStat,
    Statistics,
    StatusCount,
    WarrantyAlert,
)

NO_FAULT_DATA = "no fault records"


def format_rate(part: int, total: int) -> str:
    """百分比，保留兩位小數；total 為 0 時回傳 0.00%"""
    rate = part * 100.0 / total if total > 0 else 0.0
    return f"{rate:.2f}%"


def add_months(start: date, months: int) -> date:
    """加上月份，日期超出目標月份天數時取月底"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def warranty_end_date(device: Device) -> Optional[date]:
    if device.install_date is None or device.warranty_period is None:
        return None
    return add_months(device.install_date, device.warranty_period)


def build_statistics(
    total_devices: int, status_counts: List[StatusCount], now: datetime
) -> Statistics:
    online = sum(
        c.count for c in status_counts if c.status == DeviceStatus.ONLINE.value
    )
    return Statistics(
        total_devices=total_devices,
        status_distribution=status_counts,
        online_rate=format_rate(online, total_devices),
        last_update_time=now,
    )


def build_warranty_alerts(
    devices: Iterable[Device], today: date, window_days: int = 30
) -> List[WarrantyAlert]:
    """保修結束日落在 [today, today + window_days] 的設備，按剩餘天數升序"""
    alerts = []
    for device in devices:
        end_date = warranty_end_date(device)
        if end_date is None:
            continue
        days_remaining = (end_date - today).days
        if 0 <= days_remaining <= window_days:
            alerts.append(
                WarrantyAlert(
                    device_id=device.device_id,
                    device_name=device.device_name,
                    device_type=device.device_type,
                    branch=device.branch,
                    install_date=device.install_date,
                    warranty_period=device.warranty_period,
                    warranty_end_date=end_date,
                    days_remaining=days_remaining,
                )
            )
    alerts.sort(key=lambda a: a.days_remaining)
    return alerts


def build_fault_analysis(rows: List[FaultCodeStat]) -> FaultAnalysis:
    """MTTR 為各代碼平均修復時間按次數加權的平均"""
    total_faults = sum(r.fault_count for r in rows)
    if total_faults == 0:
        return FaultAnalysis(
            fault_analysis=rows, total_faults=0, overall_mttr=NO_FAULT_DATA
        )

    total_time = sum(r.avg_fix_time_minutes * r.fault_count for r in rows)
    mttr = total_time / total_faults
    return FaultAnalysis(
        fault_analysis=rows,
        total_faults=total_faults,
        overall_mttr=f"{mttr:.1f} minutes",
        overall_mttr_minutes=mttr,
    )


def build_branch_health(rows: List[BranchStat], now: datetime) -> BranchHealth:
    total = sum(r.total for r in rows)
    online = sum(r.online for r in rows)
    return BranchHealth(
        branch_stats=rows,
        overall_online_rate=format_rate(online, total),
        timestamp=now,
    )
