from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field
from typing import Annotated, List, Literal, Optional, Union
from datetime import date, datetime
from enum import Enum
from bson import ObjectId

from . import geo_tools as GeoTools

def _validate_object_id(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError("Invalid ObjectId")
    return value

def _validate_lat_lng(value: str) -> str:
    GeoTools.parse_lat_lng(value)
    return value

# 요청 경로/본문에서 받는 ObjectId 문자열
ObjectIdStr = Annotated[str, AfterValidator(_validate_object_id)]
# DB 문서의 ObjectId를 응답용 문자열로 변환
PyObjectId = Annotated[str, BeforeValidator(str)]
# "lat,lng" 좌표 문자열
LatLngStr = Annotated[str, AfterValidator(_validate_lat_lng)]

class RoleEnum(str, Enum):
    USER = "user"
    ADMIN = "admin"

class CommonFields:
    # 고양이 관련 필드들
    cat_name_set: str = Field(
        examples=["Miuku"],
        title="고양이 이름",
        description="고양이 이름",
        min_length=1,
        max_length=100
    )

    weight_set: float = Field(
        examples=[4.2],
        title="몸무게",
        description="고양이 몸무게 (kg)",
        gt=0
    )

    birthdate_set: date = Field(
        examples=["2020-05-01"],
        title="생년월일",
        description="고양이 생년월일"
    )

    # 사용자 관련 필드들
    user_name_set: str = Field(
        examples=["john_doe"],
        title="사용자 이름",
        description="사용자 이름 (최소 3자)",
        min_length=3,
        max_length=50
    )

    email_set: EmailStr = Field(
        examples=["john.doe@example.com"],
        title="이메일 주소",
        description="사용자 이메일 주소"
    )

    password_set: str = Field(
        examples=["SecurePassword123!"],
        title="비밀번호",
        description="사용자 비밀번호 (최소 8자)",
        min_length=8,
        max_length=72
    )

class DocumentModel(BaseModel):
    """
    MongoDB 문서 응답 모델의 기본 클래스 (_id를 문자열로 노출)
    """
    model_config = ConfigDict(populate_by_name=True)

    id: PyObjectId = Field(alias="_id", title="문서 ID")

# 위치 정보 스키마
class GeoPoint(BaseModel):
    """
    GeoJSON Point ([lng, lat])
    """
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(
        examples=[[24.94, 60.17]],
        title="좌표",
        description="[경도, 위도]",
        min_length=2,
        max_length=2
    )

# 사용자 관련 스키마들
class UserCreateRequest(BaseModel):
    """
    사용자 생성 요청 모델 (role은 받지 않음)
    """
    user_name: str = CommonFields.user_name_set
    email: EmailStr = CommonFields.email_set
    password: str = CommonFields.password_set

class UserUpdateRequest(BaseModel):
    """
    현재 사용자 정보 수정 요청 모델
    """
    user_name: Optional[str] = Field(
        None,
        examples=["jane_doe"],
        title="사용자 이름",
        description="수정할 사용자 이름",
        min_length=3,
        max_length=50
    )
    email: Optional[EmailStr] = Field(
        None,
        examples=["new.email@example.com"],
        title="이메일 주소",
        description="수정할 이메일 주소"
    )
    password: Optional[str] = Field(
        None,
        title="비밀번호",
        description="수정할 비밀번호 (최소 8자)",
        min_length=8,
        max_length=72
    )

class UserLoginRequest(BaseModel):
    """
    로그인 요청 모델
    """
    email: EmailStr = CommonFields.email_set
    password: str = Field(
        title="비밀번호",
        description="사용자 비밀번호"
    )

class UserResponse(DocumentModel):
    """
    사용자 정보 응답 모델 (password, role 제외)
    """
    user_name: str
    email: str

class UserMessageResponse(BaseModel):
    message: str
    data: UserResponse

class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserResponse

class SessionUser(DocumentModel):
    """
    인증 토큰에서 복원한 현재 사용자 정보
    """
    user_name: str
    email: str
    role: RoleEnum = RoleEnum.USER

    def public(self) -> UserResponse:
        return UserResponse(_id=self.id, user_name=self.user_name, email=self.email)

# 고양이 관련 스키마들
class CatUpdateRequest(BaseModel):
    """
    고양이 정보 부분 수정 요청 모델
    """
    cat_name: Optional[str] = Field(
        None,
        examples=["Miuku"],
        title="고양이 이름",
        min_length=1,
        max_length=100
    )
    weight: Optional[float] = Field(
        None,
        examples=[4.5],
        title="몸무게",
        gt=0
    )
    birthdate: Optional[date] = Field(
        None,
        examples=["2020-05-01"],
        title="생년월일"
    )

class CatAdminUpdateRequest(CatUpdateRequest):
    """
    관리자용 고양이 수정 요청 모델 (소유자 변경 가능)
    """
    owner: Optional[ObjectIdStr] = Field(
        None,
        examples=["65f1c2a9e4b0a1b2c3d4e5f6"],
        title="소유자 ID",
        description="새 소유자 사용자 ID"
    )

class CatResponse(DocumentModel):
    """
    고양이 정보 응답 모델.
    owner는 조회 방식에 따라 사용자 ID 또는 {_id, user_name, email}로 채워집니다.
    """
    cat_name: str
    weight: float
    birthdate: datetime
    filename: str
    location: GeoPoint
    owner: Optional[Union[UserResponse, PyObjectId]] = Field(None, union_mode="left_to_right")

class CatMessageResponse(BaseModel):
    message: str
    data: CatResponse
