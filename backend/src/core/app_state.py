import logging
from typing import Optional
from service import (
    JWTService,
    MongoClient,
    UploadService,
)

logger = logging.getLogger(__name__)

# 핸들러 인스턴스는 초기에 None으로 설정하고 지연 초기화
mongo_handler: Optional[MongoClient.MongoDBHandler] = None
jwt_handler: Optional[JWTService.JWTHandler] = None
upload_handler: Optional[UploadService.UploadHandler] = None

async def initialize_handlers():
    """
    애플리케이션 시작 시 DB, JWT, 업로드 핸들러 초기화
    """
    global mongo_handler, jwt_handler, upload_handler

    # MongoDB 핸들러 초기화
    if mongo_handler is None:
        try:
            mongo_handler = MongoClient.MongoDBHandler()
            await mongo_handler.ensure_indexes()
            logger.info("MongoDB 핸들러가 성공적으로 초기화되었습니다.")
        except Exception:
            logger.exception("MongoDB 초기화 오류 발생")
            mongo_handler = None

    # JWT 핸들러 초기화
    if jwt_handler is None:
        try:
            jwt_handler = JWTService.JWTHandler()
            logger.info("JWT 핸들러가 성공적으로 초기화되었습니다.")
        except Exception:
            logger.exception("JWT 초기화 오류 발생")
            jwt_handler = None

    # 업로드 핸들러 초기화
    if upload_handler is None:
        try:
            upload_handler = UploadService.UploadHandler()
            logger.info("업로드 핸들러가 성공적으로 초기화되었습니다.")
        except OSError:
            logger.exception("업로드 디렉토리 초기화 오류 발생")
            upload_handler = None

async def cleanup_handlers():
    """
    애플리케이션 종료 시 모든 핸들러 정리
    """
    global mongo_handler

    if mongo_handler:
        mongo_handler.close()
        mongo_handler = None
        logger.info("MongoDB 핸들러 연결이 해제되었습니다.")

def get_mongo_handler() -> Optional[MongoClient.MongoDBHandler]:
    """
    MongoDB 핸들러 인스턴스를 반환하는 함수

    Returns:
        Optional[MongoClient.MongoDBHandler]: MongoDB 핸들러 인스턴스
    """
    return mongo_handler

def get_jwt_handler() -> Optional[JWTService.JWTHandler]:
    return jwt_handler

def get_upload_handler() -> Optional[UploadService.UploadHandler]:
    return upload_handler
