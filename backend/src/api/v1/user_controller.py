import logging
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Path

from core import Dependencies
from domain import ErrorTools, Schema
from service import JWTService, MongoClient

logger = logging.getLogger(__name__)

user_router = APIRouter()

def _public(user: dict) -> Schema.UserResponse:
    return Schema.UserResponse(_id=user["_id"], user_name=user["user_name"], email=user["email"])

@user_router.get("/token", summary="토큰 유효성 확인", response_model=Schema.UserResponse)
async def check_token(
    session_user: Optional[Schema.SessionUser] = Depends(Dependencies.get_session_user)
):
    """
    현재 토큰이 유효하면 토큰에 담긴 사용자 정보를 반환합니다. DB를 조회하지 않습니다.
    """
    if session_user is None:
        raise ErrorTools.ForbiddenException(detail="Token is not valid")
    return session_user.public()

@user_router.get("", summary="사용자 전체 목록", response_model=List[Schema.UserResponse])
async def get_users(
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    password, role을 제외한 모든 사용자를 조회합니다.
    """
    try:
        return await mongo_handler.get_users()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error listing users")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@user_router.post("", summary="사용자 생성", response_model=Schema.UserMessageResponse)
async def create_user(
    request: Schema.UserCreateRequest,
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client),
    jwt_handler: JWTService.JWTHandler = Depends(Dependencies.get_jwt_handler)
):
    """
    새 사용자를 생성합니다. 비밀번호는 bcrypt로 해시되고 role은 항상 "user"입니다.

    Args:
        request: 사용자 생성 요청 데이터
        mongo_handler: MongoDB 핸들러
        jwt_handler: 비밀번호 해시에 사용할 JWT 핸들러

    Returns:
        Schema.UserMessageResponse: {_id, user_name, email}
    """
    try:
        user_data = request.model_dump()
        user_data["password"] = jwt_handler.hash_password(request.password)
        user_data["role"] = Schema.RoleEnum.USER.value

        user = await mongo_handler.create_user(user_data)
        return {"message": "User created", "data": _public(user)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error creating user")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@user_router.put("", summary="현재 사용자 수정", response_model=Schema.UserMessageResponse)
async def update_current_user(
    request: Schema.UserUpdateRequest,
    session_user: Schema.SessionUser = Depends(Dependencies.require_session_user),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client),
    jwt_handler: JWTService.JWTHandler = Depends(Dependencies.get_jwt_handler)
):
    """
    현재 사용자의 정보를 부분 수정합니다. 비밀번호가 포함되면 다시 해시합니다.
    """
    try:
        update = request.model_dump(exclude_unset=True, exclude_none=True)
        if "password" in update:
            update["password"] = jwt_handler.hash_password(update["password"])

        user = await mongo_handler.update_user(session_user.id, update)
        if user is None:
            raise ErrorTools.NotFoundException(detail="Not found")
        return {"message": "User modified", "data": _public(user)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error updating user")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@user_router.delete("", summary="현재 사용자 삭제", response_model=Schema.UserMessageResponse)
async def delete_current_user(
    session_user: Schema.SessionUser = Depends(Dependencies.require_session_user),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    현재 사용자를 삭제하고 세션에 있던 사용자 정보를 확인용으로 반환합니다.
    """
    try:
        user = await mongo_handler.delete_user(session_user.id)
        if user is None:
            raise ErrorTools.NotFoundException(detail="User not found")
        return {"message": "User deleted", "data": session_user.public()}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error deleting user")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@user_router.get("/{user_id}", summary="사용자 조회", response_model=Optional[Schema.UserResponse])
async def get_user(
    user_id: Annotated[Schema.ObjectIdStr, Path(description="사용자 ID")],
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    사용자 공개 정보({_id, user_name, email})를 조회합니다. 없으면 null을 반환합니다.
    """
    try:
        return await mongo_handler.get_user(user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error retrieving user")
        raise ErrorTools.InternalServerErrorException(detail=str(e))
