"""
共享領域模組

包含所有領域共用的模型與錯誤分類。
"""

from devicehub.domains.common.models.base_model import (
    DomainBaseModel,
    ValueObject,
    utc_now,
)

from devicehub.domains.common.exceptions import (
    DomainError,
    Error,
    ValidationError,
    NotFoundError,
    ConflictError,
    StoreError,
)
