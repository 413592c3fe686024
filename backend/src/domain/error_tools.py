import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

class BaseHTTPError(HTTPException):
    """
    모든 API 오류의 기본 클래스.
    message(detail)와 status_code를 함께 가지며 ExceptionManager가 공통 형식으로 응답합니다.
    """
    default_status_code: int = 500
    default_detail: str = "Internal Server Error"

    def __init__(
            self,
            detail: Optional[str] = None,
            status_code: Optional[int] = None,
            headers: Optional[Dict[str, str]] = None
        ) -> None:
        super().__init__(
            status_code=status_code or self.default_status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )

class ValueErrorException(BaseHTTPError):
    """
    입력값 검증 실패 (400)
    """
    default_status_code = 400
    default_detail = "Validation failed"

    def __init__(
            self,
            detail: Optional[str] = None,
            status_code: Optional[int] = None,
            errors: Optional[List[Dict[str, Any]]] = None
        ) -> None:
        if errors and detail is None:
            detail = format_validation_errors(errors)
        super().__init__(detail=detail, status_code=status_code)
        self.errors = errors or []

class BadRequestException(BaseHTTPError):
    default_status_code = 400
    default_detail = "Bad Request"

class UnauthorizedException(BaseHTTPError):
    default_status_code = 401
    default_detail = "Unauthorized"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})

class ForbiddenException(BaseHTTPError):
    default_status_code = 403
    default_detail = "Forbidden"

class NotFoundException(BaseHTTPError):
    default_status_code = 404
    default_detail = "Not found"

class ConflictException(BaseHTTPError):
    default_status_code = 409
    default_detail = "Conflict"

class InternalServerErrorException(BaseHTTPError):
    default_status_code = 500
    default_detail = "Internal Server Error"

class ServiceUnavailableException(BaseHTTPError):
    default_status_code = 503
    default_detail = "Service Unavailable"

def format_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """
    검증 오류 목록을 "<message>: <field>" 형식으로 변환하여 ", "로 연결합니다.

    Args:
        errors (List[Dict[str, Any]]): pydantic/FastAPI가 보고한 오류 목록 (보고 순서 유지)

    Returns:
        str: 연결된 오류 메시지
    """
    messages = []
    for error in errors:
        loc = error.get("loc") or ()
        param = str(loc[-1]) if loc else ""
        messages.append(f"{error.get('msg', 'Invalid value')}: {param}")
    return ", ".join(messages)

def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "status_code": status_code},
        headers=headers,
    )

class ExceptionManager:
    """
    애플리케이션 전역 예외 핸들러 등록
    """

    @staticmethod
    def register(app: FastAPI) -> None:
        @app.exception_handler(RequestValidationError)
        async def handle_validation_error(request: Request, exc: RequestValidationError):
            error = ValueErrorException(errors=exc.errors())
            logger.info(f"Validation failed | {request.method} {request.url.path} | {error.detail}")
            return error_response(error.status_code, error.detail)

        @app.exception_handler(StarletteHTTPException)
        async def handle_http_error(request: Request, exc: StarletteHTTPException):
            if exc.status_code >= 500:
                logger.error(f"{exc.status_code} | {request.method} {request.url.path} | {exc.detail}")
            elif exc.status_code in (403, 404):
                logger.warning(f"{exc.status_code} | {request.method} {request.url.path} | {exc.detail}")
            return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

        @app.exception_handler(Exception)
        async def handle_unexpected_error(request: Request, exc: Exception):
            logger.exception(f"Unhandled error | {request.method} {request.url.path}")
            return error_response(500, str(exc) or "Internal Server Error")
