from datetime import date, datetime
from typing import Optional
from sqlmodel import Field, SQLModel
from enum import Enum as PyEnum
from sqlalchemy import String


# --- Enum Definitions ---
class DeviceStatus(str, PyEnum):
    OFFLINE = "OFFLINE"
    ONLINE = "ONLINE"
    FAULT = "FAULT"
    MAINTENANCE = "MAINTENANCE"
    DECOMMISSIONED = "DECOMMISSIONED"


# --- SQLModel Definitions ---
class DeviceBase(SQLModel):
    """設備基礎模型，定義設備的共同屬性"""

    device_id: str = Field(index=True, unique=True, sa_type=String(64))
    device_name: str = Field(sa_type=String(128))
    device_type: str = Field(index=True, sa_type=String(50))
    vendor: Optional[str] = Field(default=None, sa_type=String(100))
    model: Optional[str] = Field(default=None, sa_type=String(100))
    ip_address: Optional[str] = Field(default=None, sa_type=String(45))
    location: str = Field(sa_type=String(255))
    branch: Optional[str] = Field(default=None, index=True, sa_type=String(100))
    status: str = Field(
        default=DeviceStatus.OFFLINE.value, index=True, sa_type=String(20)
    )
    install_date: Optional[date] = Field(default=None)
    warranty_period: Optional[int] = Field(default=None)  # 保修期（月）


class Device(DeviceBase, table=True):
    """設備實體模型，對應資料庫中的 device_info 表"""

    __tablename__ = "device_info"

    id: Optional[int] = Field(default=None, primary_key=True)
    create_time: Optional[datetime] = Field(default=None)
    update_time: Optional[datetime] = Field(default=None, index=True)


class FaultRecord(SQLModel, table=True):
    """故障記錄，由外部故障系統寫入，核心只讀"""

    __tablename__ = "device_fault_record"

    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(index=True, sa_type=String(64))
    fault_code: str = Field(index=True, sa_type=String(50))
    downtime_duration: Optional[int] = Field(default=None)  # 停機時長（分鐘）
    occurred_at: Optional[datetime] = Field(default=None)


class DeviceStatusAudit(SQLModel, table=True):
    """設備狀態變更審計記錄"""

    __tablename__ = "device_status_audit"

    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(index=True, sa_type=String(64))
    old_status: Optional[str] = Field(default=None, sa_type=String(20))
    new_status: str = Field(sa_type=String(20))
    reason: Optional[str] = Field(default=None, sa_type=String(500))
    changed_at: datetime = Field(index=True)
