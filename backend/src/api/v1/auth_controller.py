import logging
from fastapi import APIRouter, Depends, HTTPException

from core import Dependencies
from domain import ErrorTools, Schema
from service import JWTService, MongoClient

logger = logging.getLogger(__name__)

auth_router = APIRouter()

@auth_router.post("/login", summary="로그인", response_model=Schema.LoginResponse)
async def login(
    request: Schema.UserLoginRequest,
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client),
    jwt_handler: JWTService.JWTHandler = Depends(Dependencies.get_jwt_handler)
):
    """
    이메일과 비밀번호로 로그인하고 액세스 토큰을 발급합니다.

    Args:
        request: 로그인 요청 데이터
        mongo_handler: MongoDB 핸들러
        jwt_handler: JWT 핸들러

    Returns:
        Schema.LoginResponse: 액세스 토큰과 사용자 정보
    """
    try:
        user = await mongo_handler.get_user_by_email(request.email)
        if not user or not jwt_handler.verify_password(request.password, user["password"]):
            raise ErrorTools.UnauthorizedException(detail="Incorrect username/password")

        token = jwt_handler.create_access_token(user)
        logger.info(f"User {user['_id']} logged in")
        return {
            "message": "Login successful",
            "token": token,
            "user": Schema.UserResponse(_id=user["_id"], user_name=user["user_name"], email=user["email"]),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error during login")
        raise ErrorTools.InternalServerErrorException(detail=str(e))
