from typing import Optional

from devicehub.domains.common.exceptions import ValidationError
from devicehub.domains.device.models.device_model import DeviceStatus
from devicehub.domains.device.models.dto import DeviceCreate

REQUIRED_FIELDS = ("device_id", "device_name", "device_type", "location")


def parse_status(value: Optional[str]) -> DeviceStatus:
    """將狀態字串正規化為 DeviceStatus（不分大小寫）"""
    if value is None or not value.strip():
        raise ValidationError("Device status must not be empty")
    try:
        return DeviceStatus(value.strip().upper())
    except ValueError:
        raise ValidationError(
            f"Invalid device status: {value}",
            details={"allowed": [s.value for s in DeviceStatus]},
        )


def validate_for_create(device_in: DeviceCreate) -> DeviceCreate:
    """新增設備前的必填欄位檢查與正規化

    不檢查 deviceId 唯一性，那由存儲層負責。

    Returns:
        正規化後的副本：狀態預設為 OFFLINE 並轉為大寫
    """
    missing = [
        field
        for field in REQUIRED_FIELDS
        if not getattr(device_in, field) or not getattr(device_in, field).strip()
    ]
    if missing:
        raise ValidationError(
            f"Required device fields missing: {', '.join(missing)}",
            details={"missing": missing},
        )

    status = device_in.status
    if status is None or not status.strip():
        status = DeviceStatus.OFFLINE.value
    return device_in.model_copy(update={"status": parse_status(status).value})
