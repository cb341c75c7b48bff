from typing import Iterable, Optional

from devicehub.domains.device.models.device_model import Device
from devicehub.domains.device.models.results import SearchResult


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _contains(field: Optional[str], needle: str) -> bool:
    return field is not None and needle in field.lower()


def matches(
    device: Device,
    keyword: Optional[str] = None,
    device_type: Optional[str] = None,
    branch: Optional[str] = None,
) -> bool:
    """單一設備是否符合全部條件（條件之間為 AND）"""
    if not _is_blank(keyword):
        needle = keyword.strip().lower()
        if not (
            _contains(device.device_name, needle)
            or _contains(device.device_id, needle)
            or _contains(device.location, needle)
            or _contains(device.branch, needle)
        ):
            return False

    if not _is_blank(device_type):
        if (device.device_type or "").lower() != device_type.strip().lower():
            return False

    if not _is_blank(branch):
        if not _contains(device.branch, branch.strip().lower()):
            return False

    return True


def search_devices(
    devices: Iterable[Device],
    keyword: Optional[str] = None,
    device_type: Optional[str] = None,
    branch: Optional[str] = None,
) -> SearchResult:
    """在已取得的設備集合上過濾，保持輸入順序"""
    filtered = [d for d in devices if matches(d, keyword, device_type, branch)]

    search_params = {}
    if not _is_blank(keyword):
        search_params["keyword"] = keyword
    if not _is_blank(device_type):
        search_params["device_type"] = device_type
    if not _is_blank(branch):
        search_params["branch"] = branch

    return SearchResult(
        devices=filtered, total=len(filtered), search_params=search_params
    )
