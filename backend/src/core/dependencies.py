from fastapi import Depends, Header
from typing import Optional

from . import app_state
from domain import ErrorTools, Schema
from service import (
    JWTService,
    MongoClient,
    UploadService,
)

async def get_mongo_client() -> MongoClient.MongoDBHandler:
    """
    MongoDB 핸들러 의존성 주입
    """
    mongo_handler = app_state.get_mongo_handler()
    if mongo_handler is None:
        raise ErrorTools.ServiceUnavailableException(detail="Database service is unavailable")
    return mongo_handler

async def get_jwt_handler() -> JWTService.JWTHandler:
    """
    JWT 핸들러 의존성 주입
    """
    jwt_handler = app_state.get_jwt_handler()
    if jwt_handler is None:
        raise ErrorTools.ServiceUnavailableException(detail="Authentication service is unavailable")
    return jwt_handler

async def get_upload_handler() -> UploadService.UploadHandler:
    """
    업로드 핸들러 의존성 주입
    """
    upload_handler = app_state.get_upload_handler()
    if upload_handler is None:
        raise ErrorTools.ServiceUnavailableException(detail="Upload service is unavailable")
    return upload_handler

async def get_session_user(
    authorization: Optional[str] = Header(None, description="Bearer JWT 토큰"),
    jwt_handler: JWTService.JWTHandler = Depends(get_jwt_handler)
) -> Optional[Schema.SessionUser]:
    """
    Authorization 헤더의 JWT 토큰에서 현재 사용자 정보를 복원합니다. DB를 조회하지 않습니다.

    Args:
        authorization: "Bearer {jwt_token}" 형식의 Authorization 헤더

    Returns:
        Optional[Schema.SessionUser]: 현재 사용자, 헤더가 없거나 토큰이 유효하지 않으면 None
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return jwt_handler.extract_session_user(token)

async def require_session_user(
    session_user: Optional[Schema.SessionUser] = Depends(get_session_user)
) -> Schema.SessionUser:
    """
    인증된 사용자만 허용합니다.
    """
    if session_user is None:
        raise ErrorTools.UnauthorizedException(detail="Token is not valid")
    return session_user

async def require_admin(
    session_user: Schema.SessionUser = Depends(require_session_user)
) -> Schema.SessionUser:
    """
    관리자 권한이 있는 사용자만 허용합니다.
    """
    if session_user.role != Schema.RoleEnum.ADMIN:
        raise ErrorTools.ForbiddenException(detail="Admin only")
    return session_user
