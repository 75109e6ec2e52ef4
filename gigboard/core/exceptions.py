# gigboard/core/exceptions.py
# 業務錯誤的分類。全部繼承 HTTPException，
# Service 直接 raise，FastAPI 會自動轉成 {"detail": ...} 回應。
from typing import Dict, Optional
from fastapi import HTTPException, status


class AppError(HTTPException):
    """所有業務錯誤的基底類別"""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "伺服器發生錯誤"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.http_status,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(AppError):
    """欄位格式錯誤、列舉值不合法、預算區間不合理等 (400)"""
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "請求資料不合法"


class AuthenticationError(AppError):
    """缺少或無效的身分憑證 (401)"""
    http_status = status.HTTP_401_UNAUTHORIZED
    default_detail = "無法驗證憑證"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    """呼叫者與資源沒有關聯 (不是擁有者/參與者) (403)"""
    http_status = status.HTTP_403_FORBIDDEN
    default_detail = "無權限執行此操作"


class NotFoundError(AppError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "資源不存在"


class ConflictError(AppError):
    """重複資料，例如重複提案、重複 Email (409)"""
    http_status = status.HTTP_409_CONFLICT
    default_detail = "資料重複"


class GoneError(AppError):
    """資源已被軟刪除 (410)"""
    http_status = status.HTTP_410_GONE
    default_detail = "資源已被刪除"


class StorageError(AppError):
    """
    資料庫操作失敗 (500)。
    訊息固定，不把 driver 錯誤細節回傳給前端 (細節只寫進 log)。
    """
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "資料庫操作失敗，請稍後再試"
