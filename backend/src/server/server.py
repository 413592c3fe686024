import os
import sys
import logging
import uvicorn

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from api import v1
from core import AppState
from domain import ErrorTools
from service import UploadService

def setup_logging() -> None:
    """
    애플리케이션 전체 로깅 설정 (LOG_LEVEL 환경 변수)
    """
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

@asynccontextmanager
async def lifespan(app: FastAPI):
    '''
    FastAPI 애플리케이션의 수명 주기를 관리하는 함수.
    '''
    setup_logging()
    await AppState.initialize_handlers()
    try:
        yield
    finally:
        await AppState.cleanup_handlers()

app = FastAPI(lifespan=lifespan)

# 업로드된 사진 제공 (디렉토리는 UploadHandler 초기화 시 생성)
app.mount(
    "/uploads",
    StaticFiles(directory=UploadService.get_upload_dir(), check_dir=False),
    name="uploads"
)

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Cat API",
        version="v1.0.*",
        summary="고양이 위치 공유 API",
        routes=app.routes,
        description=(
            "이 API는 다음과 같은 기능을 제공합니다:\n\n"
            "- 고양이 등록/조회/수정/삭제 및 영역 검색\n"
            "- 사용자 등록/조회/수정/삭제 및 토큰 확인\n\n"
            "각 엔드포인트의 자세한 정보는 해당 엔드포인트의 문서에서 확인할 수 있습니다."
        ),
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "로그인으로 발급받은 JWT 토큰을 입력하세요."
        }
    }
    app.openapi_schema = openapi_schema
    return app.openapi_schema

ErrorTools.ExceptionManager.register(app)
app.openapi = custom_openapi
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    v1.version_1,
    prefix="/api/v1",
    tags=["Version 1 Router"],
    responses={500: {"description": "Internal Server Error"}},
)

if __name__  ==  "__main__":
    uvicorn.run(
        app,
        host = "0.0.0.0",
        port = int(os.getenv("PORT", "3000")),
        http = "h11",
        loop="asyncio"
    )
