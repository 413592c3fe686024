import logging
from datetime import date, datetime, time
from typing import Annotated, Any, Dict, List, Optional
from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile
from starlette.concurrency import run_in_threadpool

from core import Dependencies
from domain import ErrorTools, GeoTools, Schema
from service import MongoClient, UploadService

logger = logging.getLogger(__name__)

cat_router = APIRouter()

def _to_document(update: Dict[str, Any]) -> Dict[str, Any]:
    """
    요청 값을 MongoDB 저장 형식으로 변환합니다. (date -> datetime, owner -> ObjectId)
    """
    document = dict(update)
    if isinstance(document.get("birthdate"), date) and not isinstance(document["birthdate"], datetime):
        document["birthdate"] = datetime.combine(document["birthdate"], time.min)
    if document.get("owner") is not None:
        document["owner"] = ObjectId(document["owner"])
    return document

@cat_router.get("/user", summary="현재 사용자의 고양이 목록", response_model=List[Schema.CatResponse])
async def get_cats_by_user(
    session_user: Schema.SessionUser = Depends(Dependencies.require_session_user),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    현재 사용자가 소유한 고양이 목록을 조회합니다. 결과가 없으면 빈 목록을 반환합니다.
    """
    try:
        return await mongo_handler.get_cats_by_owner(session_user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error listing cats by owner")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.get("/area", summary="영역 내 고양이 목록", response_model=List[Schema.CatResponse])
async def get_cats_by_bounding_box(
    top_right: Annotated[Schema.LatLngStr, Query(alias="topRight", description='북동쪽 꼭짓점 "lat,lng"')],
    bottom_left: Annotated[Schema.LatLngStr, Query(alias="bottomLeft", description='남서쪽 꼭짓점 "lat,lng"')],
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    두 꼭짓점으로 정의되는 사각형 안에 있는 고양이 목록을 조회합니다.

    Args:
        top_right: 북동쪽 꼭짓점 "lat,lng"
        bottom_left: 남서쪽 꼭짓점 "lat,lng"
        mongo_handler: MongoDB 핸들러

    Returns:
        List[Schema.CatResponse]: 영역 내 고양이 목록
    """
    try:
        polygon = GeoTools.rectangle_bounds(
            GeoTools.parse_lat_lng(top_right),
            GeoTools.parse_lat_lng(bottom_left)
        )
        return await mongo_handler.get_cats_within(polygon)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error listing cats by bounding box")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.put("/admin/{cat_id}", summary="고양이 수정 (관리자)", response_model=Schema.CatMessageResponse)
async def update_cat_admin(
    request: Schema.CatAdminUpdateRequest,
    cat_id: Annotated[Schema.ObjectIdStr, Path(description="고양이 ID")],
    session_user: Schema.SessionUser = Depends(Dependencies.require_admin),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    관리자가 고양이 정보를 수정합니다. 소유자 변경도 가능합니다.
    """
    try:
        update = _to_document(request.model_dump(exclude_unset=True, exclude_none=True))
        cat = await mongo_handler.update_cat(cat_id, update)
        if cat is None:
            raise ErrorTools.NotFoundException(detail="Cat not found")
        logger.info(f"Cat {cat_id} updated by admin {session_user.id}")
        return {"message": "Cat updated", "data": cat}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error updating cat as admin")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.delete("/admin/{cat_id}", summary="고양이 삭제 (관리자)", response_model=Schema.CatMessageResponse)
async def delete_cat_admin(
    cat_id: Annotated[Schema.ObjectIdStr, Path(description="고양이 ID")],
    session_user: Schema.SessionUser = Depends(Dependencies.require_admin),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    관리자가 고양이를 삭제합니다. 응답의 owner는 사용자 공개 정보로 채워집니다.
    """
    try:
        cat = await mongo_handler.delete_cat(cat_id, with_owner=True)
        if cat is None:
            raise ErrorTools.NotFoundException(detail="No cat found")
        logger.info(f"Cat {cat_id} deleted by admin {session_user.id}")
        return {"message": "Cat deleted", "data": cat}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error deleting cat as admin")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.delete("/{cat_id}", summary="고양이 삭제", response_model=Schema.CatMessageResponse)
async def delete_cat(
    cat_id: Annotated[Schema.ObjectIdStr, Path(description="고양이 ID")],
    session_user: Schema.SessionUser = Depends(Dependencies.require_session_user),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    소유자가 자신의 고양이를 삭제합니다. 다른 사용자의 고양이는 찾을 수 없는 것으로 처리됩니다.
    """
    try:
        cat = await mongo_handler.delete_cat(cat_id, owner_id=session_user.id)
        if cat is None:
            raise ErrorTools.NotFoundException(detail="No cat found")
        return {"message": "Cat deleted", "data": cat}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error deleting cat")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.put("/{cat_id}", summary="고양이 수정", response_model=Schema.CatMessageResponse)
async def update_cat(
    request: Schema.CatUpdateRequest,
    cat_id: Annotated[Schema.ObjectIdStr, Path(description="고양이 ID")],
    session_user: Schema.SessionUser = Depends(Dependencies.require_session_user),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    소유자가 자신의 고양이 정보를 부분 수정합니다.
    """
    try:
        update = _to_document(request.model_dump(exclude_unset=True, exclude_none=True))
        cat = await mongo_handler.update_cat(cat_id, update, owner_id=session_user.id)
        if cat is None:
            raise ErrorTools.NotFoundException(detail="Cat not found")
        return {"message": "Cat updated", "data": cat}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error updating cat")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.get("/{cat_id}", summary="고양이 조회", response_model=Schema.CatResponse)
async def get_cat(
    cat_id: Annotated[Schema.ObjectIdStr, Path(description="고양이 ID")],
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    고양이 한 마리를 소유자 정보({_id, user_name, email})와 함께 조회합니다.
    """
    try:
        cat = await mongo_handler.get_cat(cat_id)
        if cat is None:
            raise ErrorTools.NotFoundException(detail="No cat found")
        return cat
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error retrieving cat")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.get("", summary="고양이 전체 목록", response_model=List[Schema.CatResponse])
async def get_cats(
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client)
):
    """
    모든 고양이를 소유자 정보와 함께 조회합니다.
    """
    try:
        return await mongo_handler.get_cats()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error listing cats")
        raise ErrorTools.InternalServerErrorException(detail=str(e))

@cat_router.post("", summary="고양이 등록", response_model=Schema.CatMessageResponse)
async def create_cat(
    cat_name: str = Form(..., min_length=1, max_length=100, description="고양이 이름"),
    weight: float = Form(..., gt=0, description="몸무게 (kg)"),
    birthdate: date = Form(..., description="생년월일"),
    file: Optional[UploadFile] = File(None, description="고양이 사진"),
    session_user: Schema.SessionUser = Depends(Dependencies.require_session_user),
    mongo_handler: MongoClient.MongoDBHandler = Depends(Dependencies.get_mongo_client),
    upload_handler: UploadService.UploadHandler = Depends(Dependencies.get_upload_handler)
):
    """
    새 고양이를 등록합니다. owner, location, filename은 서버에서 지정합니다.

    Args:
        cat_name: 고양이 이름
        weight: 몸무게
        birthdate: 생년월일
        file: 업로드된 사진 (필수)
        session_user: 현재 사용자
        mongo_handler: MongoDB 핸들러
        upload_handler: 업로드 핸들러

    Returns:
        Schema.CatMessageResponse: 생성된 고양이
    """
    if file is None:
        raise ErrorTools.BadRequestException(detail="File not found")

    filename = await upload_handler.save(file)
    try:
        cat_data = _to_document({
            "cat_name": cat_name,
            "weight": weight,
            "birthdate": birthdate,
            "filename": filename,
            "location": await run_in_threadpool(upload_handler.get_location, filename),
            "owner": session_user.id,
        })
        cat = await mongo_handler.create_cat(cat_data)
        return {"message": "Cat created", "data": cat}
    except HTTPException:
        await upload_handler.remove(filename)
        raise
    except Exception as e:
        await upload_handler.remove(filename)
        logger.exception("Error creating cat")
        raise ErrorTools.InternalServerErrorException(detail=str(e))
