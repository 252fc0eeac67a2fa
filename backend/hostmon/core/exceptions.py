"""
全局异常处理模块 (Global Exception Handling Module)

定义业务异常类和 FastAPI 全局异常处理器，提供统一的错误响应格式。
每个异常类携带 HTTP 状态码和错误类别，调用方据此区分坏请求、鉴权失败、
主机不存在、序列数据损坏和存储不可用。

Defines business exception classes and FastAPI global exception handlers,
providing a unified error response format. Every class carries an HTTP status
and an error category so callers can tell bad requests, rejected credentials,
unknown hosts, corrupt series and unavailable storage apart.
"""
import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ============================================================
# 业务异常类 (Business Exception Classes)
# ============================================================

class BusinessError(Exception):
    """业务异常基类 (Base Business Exception)"""
    status_code: int = 400
    error: str = "business_error"

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class BadRequestError(BusinessError):
    """请求格式错误 (Malformed Request)"""
    status_code = 400
    error = "bad_request"


class InvalidRangeError(BadRequestError):
    """时间范围无效 (Invalid Time Range)"""
    error = "invalid_range"


class UnauthorizedError(BusinessError):
    """令牌不匹配或会话令牌无效 (Token Mismatch or Invalid Session Token)"""
    status_code = 401
    error = "unauthorized"


class NotFoundError(BusinessError):
    """资源不存在 (Resource Not Found)"""
    status_code = 404
    error = "not_found"


class HostNotFoundError(NotFoundError):
    """主机不存在 (Host Not Found)"""
    error = "host_not_found"


class ConflictError(BusinessError):
    """资源冲突 (Resource Conflict)"""
    status_code = 409
    error = "conflict"


class CorruptSeriesError(BusinessError):
    """
    已存储的时序 JSON 无法解码 (Stored Series Undecodable)

    数据完整性问题，需要运维介入；绝不通过丢弃历史数据来"修复"。
    """
    status_code = 500
    error = "corrupt_series"


class StorageUnavailableError(BusinessError):
    """存储后端暂时不可用，调用方可重试 (Transient Storage Failure)"""
    status_code = 503
    error = "storage_unavailable"


# ============================================================
# 全局异常处理器注册 (Global Exception Handler Registration)
# ============================================================

def _error_body(status_code: int, error: str, message: str, detail) -> dict:
    return {"error": error, "message": message, "detail": detail, "status_code": status_code}


def register_exception_handlers(app: FastAPI) -> None:
    """
    注册全局异常处理器到 FastAPI 应用 (Register global exception handlers to FastAPI app)

    处理优先级：
    1. BusinessError 子类 → 对应 HTTP 状态码 + 结构化响应
    2. RequestValidationError → 400 bad_request
    3. HTTPException → 保持原样，包装为统一格式
    4. Exception → 500 + 完整 traceback 日志
    """

    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s (%s)", exc.error, request.method, request.url.path, exc.message, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.error, exc.message, exc.detail),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=_error_body(400, "bad_request", "Invalid JSON data", str(exc.errors())),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, "http_error", str(exc.detail), None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # 记录完整 traceback 用于调试 (Log full traceback for debugging)
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            str(exc),
            traceback.format_exc(),
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(500, "internal_server_error", "Internal server error, please try again later", None),
        )
