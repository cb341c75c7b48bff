from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict


class DomainBaseModel(BaseModel):
    """所有領域模型的基類"""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        validate_assignment=True,
        from_attributes=True,
    )


class ValueObject(DomainBaseModel):
    """值對象基類，不可變且通過其屬性值來定義相等性"""

    model_config = ConfigDict(frozen=True)


def utc_now() -> datetime:
    """帶時區的當前 UTC 時間，資料庫時間欄位只接受帶時區的值"""
    return datetime.now(timezone.utc)
