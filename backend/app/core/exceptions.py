"""Exception handling for FastAPI routes.

把 domains.core 的 ApplicationError 体系转换为统一的 ErrorResponse:
- 不变量错误与库不可用错误携带 ValidationFailure，path / expected / got 提升到顶层
- 其余 ApplicationError 只返回错误码、信息与详情
- 未处理异常统一为 500
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.schemas.common import ErrorResponse
from domains.core.exceptions import ApplicationError, DatabaseUnavailableError, InvariantError
from domains.core.logging import get_logger

logger = get_logger(__name__)


def error_response(exc: ApplicationError) -> ErrorResponse:
    """构建错误响应；携带 ValidationFailure 的异常附带出错位置"""
    response = ErrorResponse(error=exc.message, code=exc.code, details=exc.details)
    failure = getattr(exc, "failure", None)
    if failure is not None:
        response.path = list(failure.path) if failure.path is not None else None
        response.expected = failure.expected
        response.got = failure.to_dict()["got"]
    return response


def _json(status_code: int, response: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """
    注册 FastAPI 异常处理器

    使用示例:
        app = FastAPI()
        register_exception_handlers(app)
    """

    @app.exception_handler(InvariantError)
    async def invariant_error_handler(request: Request, exc: InvariantError) -> JSONResponse:
        logger.info(
            "invariant_rejected",
            path=request.url.path,
            failure_path=exc.failure.path,
            expected=exc.failure.expected,
        )
        return _json(exc.http_status_code, error_response(exc))

    @app.exception_handler(DatabaseUnavailableError)
    async def unavailable_error_handler(request: Request, exc: DatabaseUnavailableError) -> JSONResponse:
        logger.warning("database_unavailable", path=request.url.path, error=str(exc.failure))
        return _json(exc.http_status_code, error_response(exc))

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
        logger.warning("application_error", code=exc.code, message=exc.message, details=exc.details)
        return _json(exc.http_status_code, error_response(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """全局异常处理器 - 捕获所有未处理的异常"""
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        response = ErrorResponse(
            error=f"Internal server error: {type(exc).__name__}",
            code="INTERNAL_ERROR",
            details={"detail": str(exc)},
        )
        return _json(500, response)
