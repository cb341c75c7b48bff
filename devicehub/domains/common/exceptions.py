"""
領域錯誤分類

傳輸層（HTTP 等）依據錯誤種類對應到使用者可見的回應：

- ValidationError: 輸入格式錯誤或缺少必要欄位，呼叫者修正輸入即可重試
- NotFoundError: 引用的 id / deviceId 不存在
- ConflictError: 違反業務規則（重複 deviceId、刪除在線設備、修改 deviceId）
- StoreError: 底層儲存失敗，例如預期影響一筆卻影響零筆
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class Error(BaseModel):
    """錯誤信息模型"""

    code: str = Field(..., description="錯誤代碼")
    message: str = Field(..., description="錯誤消息")
    details: Optional[Dict[str, Any]] = Field(None, description="錯誤詳情")


class DomainError(Exception):
    """領域錯誤基類"""

    code = "domain_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_error(self) -> Error:
        """轉換為可序列化的錯誤模型"""
        return Error(code=self.code, message=self.message, details=self.details)


class ValidationError(DomainError):
    code = "validation_error"


class NotFoundError(DomainError):
    code = "not_found"


class ConflictError(DomainError):
    code = "conflict"


class StoreError(DomainError):
    code = "store_error"
