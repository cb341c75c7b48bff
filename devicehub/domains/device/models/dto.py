from datetime import date
from typing import Optional
from pydantic import BaseModel


class DeviceCreate(BaseModel):
    """創建設備的資料傳輸對象

    必填欄位由驗證引擎檢查，這裡全部設為可選，
    缺欄位時回報領域 ValidationError 而非 pydantic 錯誤。
    """

    device_id: Optional[str] = None
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    ip_address: Optional[str] = None
    location: Optional[str] = None
    branch: Optional[str] = None
    status: Optional[str] = None
    install_date: Optional[date] = None
    warranty_period: Optional[int] = None


class DeviceUpdate(BaseModel):
    """更新設備的資料傳輸對象

    只允許更新描述性欄位；狀態只能經由狀態機變更。
    device_id 僅用於不可變性檢查。
    """

    device_id: Optional[str] = None
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    ip_address: Optional[str] = None
    location: Optional[str] = None
    branch: Optional[str] = None
    install_date: Optional[date] = None
    warranty_period: Optional[int] = None

