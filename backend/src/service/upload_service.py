import os
import logging
import secrets
import aiofiles
import aiofiles.os

from pathlib import Path
from dotenv import load_dotenv
from typing import Any, Dict, Optional
from fastapi import UploadFile
from PIL import Image

from domain import ErrorTools, GeoTools

logger = logging.getLogger(__name__)

# EXIF GPS IFD 태그
GPS_IFD = 0x8825
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4

def get_upload_dir() -> Path:
    """
    업로드 파일 저장 경로를 반환합니다. (UPLOAD_DIR, 기본값 uploads)
    """
    env_file_path = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(env_file_path)
    return Path(os.getenv("UPLOAD_DIR", "uploads")).resolve()

class UploadHandler:
    """
    업로드된 이미지 저장과 위치 정보(EXIF GPS) 추출을 담당합니다.
    """

    def __init__(self, upload_dir: Optional[str] = None) -> None:
        self.upload_dir = Path(upload_dir).resolve() if upload_dir else get_upload_dir()
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        default_coordinates = os.getenv("DEFAULT_COORDINATES", "60,24")
        try:
            self.default_lat_lng = GeoTools.parse_lat_lng(default_coordinates)
        except ValueError:
            logger.warning(f"DEFAULT_COORDINATES 값이 잘못됨 ({default_coordinates}). 기본값 60,24 사용")
            self.default_lat_lng = (60.0, 24.0)

        logger.info(f"UploadHandler 초기화 완료 - upload_dir={self.upload_dir}")

    def path_of(self, filename: str) -> Path:
        return self.upload_dir / filename

    async def save(self, upload: UploadFile) -> str:
        """
        업로드 파일을 임의의 파일명으로 저장합니다.

        Args:
            upload (UploadFile): multipart로 전달된 파일

        Returns:
            str: 저장된 파일명

        Raises:
            ErrorTools.BadRequestException: 이미지가 아닌 경우
        """
        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise ErrorTools.BadRequestException(detail="Only image files are allowed")

        extension = Path(upload.filename or "").suffix.lower()
        filename = f"{secrets.token_hex(16)}{extension}"

        content = await upload.read()
        async with aiofiles.open(self.path_of(filename), "wb") as f:
            await f.write(content)

        logger.info(f"Stored upload {upload.filename} as {filename} ({len(content)} bytes)")
        return filename

    async def remove(self, filename: str) -> None:
        try:
            await aiofiles.os.remove(self.path_of(filename))
        except FileNotFoundError:
            logger.warning(f"Upload already removed: {filename}")

    def get_location(self, filename: str) -> Dict[str, Any]:
        """
        저장된 이미지의 EXIF GPS 정보로 GeoJSON Point를 만듭니다.
        GPS 정보가 없거나 유효한 좌표가 아니면 DEFAULT_COORDINATES를 사용합니다.

        Args:
            filename (str): 저장된 파일명

        Returns:
            Dict[str, Any]: GeoJSON Point
        """
        lat, lng = self.default_lat_lng
        try:
            with Image.open(self.path_of(filename)) as image:
                gps = image.getexif().get_ifd(GPS_IFD)
            if GPS_LATITUDE in gps and GPS_LONGITUDE in gps:
                lat, lng = GeoTools.check_lat_lng(
                    GeoTools.dms_to_decimal(gps[GPS_LATITUDE], gps.get(GPS_LATITUDE_REF, "N")),
                    GeoTools.dms_to_decimal(gps[GPS_LONGITUDE], gps.get(GPS_LONGITUDE_REF, "E")),
                )
        except (OSError, ValueError, ZeroDivisionError) as e:
            logger.info(f"No GPS data in {filename}, using default coordinates: {e}")
        return GeoTools.point(lat, lng)
