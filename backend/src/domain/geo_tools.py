'''
위치 정보 관련 도구 모음.
"lat,lng" 문자열 파싱, GeoJSON Point/Polygon 생성, EXIF GPS(도/분/초) 변환을 제공합니다.
GeoJSON 좌표 순서는 항상 [lng, lat] 입니다.
'''
import math
from typing import Any, Dict, Sequence, Tuple

LatLng = Tuple[float, float]

def parse_lat_lng(value: str) -> LatLng:
    """
    "lat,lng" 형식의 문자열을 (lat, lng) 튜플로 변환합니다.

    Args:
        value (str): "60.17,24.94" 형식의 좌표 문자열

    Returns:
        LatLng: (위도, 경도)

    Raises:
        ValueError: 형식이 잘못되었거나 범위를 벗어난 경우
    """
    parts = value.split(",")
    if len(parts) != 2:
        raise ValueError('Coordinates must be given as "lat,lng"')
    lat, lng = (float(part.strip()) for part in parts)
    return check_lat_lng(lat, lng)

def check_lat_lng(lat: float, lng: float) -> LatLng:
    """
    좌표가 유한한 값이며 위도/경도 범위 안에 있는지 확인합니다.

    Raises:
        ValueError: NaN, 무한대 또는 범위를 벗어난 값인 경우
    """
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError("Coordinates must be finite numbers")
    if not -90 <= lat <= 90:
        raise ValueError("Latitude must be between -90 and 90")
    if not -180 <= lng <= 180:
        raise ValueError("Longitude must be between -180 and 180")
    return lat, lng

def point(lat: float, lng: float) -> Dict[str, Any]:
    return {"type": "Point", "coordinates": [lng, lat]}

def rectangle_bounds(top_right: LatLng, bottom_left: LatLng) -> Dict[str, Any]:
    """
    두 대각 꼭짓점으로 정의되는 사각형을 닫힌 GeoJSON Polygon으로 반환합니다.
    외곽 링은 반시계 방향이며 첫 좌표와 마지막 좌표가 같습니다.

    Args:
        top_right (LatLng): 북동쪽 꼭짓점 (lat, lng)
        bottom_left (LatLng): 남서쪽 꼭짓점 (lat, lng)

    Returns:
        Dict[str, Any]: $geoWithin 쿼리에 사용할 GeoJSON Polygon
    """
    top_lat, right_lng = top_right
    bottom_lat, left_lng = bottom_left
    ring = [
        [left_lng, bottom_lat],
        [right_lng, bottom_lat],
        [right_lng, top_lat],
        [left_lng, top_lat],
        [left_lng, bottom_lat],
    ]
    return {"type": "Polygon", "coordinates": [ring]}

def dms_to_decimal(dms: Sequence[Any], ref: str) -> float:
    """
    EXIF GPS의 (도, 분, 초) 값을 10진수 좌표로 변환합니다.

    Args:
        dms (Sequence[Any]): (degrees, minutes, seconds), 각 값은 float로 변환 가능해야 함
        ref (str): "N", "S", "E", "W" 중 하나

    Returns:
        float: 10진수 좌표 (남/서는 음수)
    """
    degrees, minutes, seconds = (float(x) for x in dms)
    value = degrees + minutes / 60 + seconds / 3600
    if ref and ref.upper() in ("S", "W"):
        value = -value
    return value
