import os
import logging

from bson import ObjectId
from pathlib import Path
from dotenv import load_dotenv
from typing import Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, GEOSPHERE, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from domain import ErrorTools

logger = logging.getLogger(__name__)

# 사용자 공개 필드 (password, role 제외)
PUBLIC_USER_PROJECTION = {"_id": 1, "user_name": 1, "email": 1}

# 고양이 문서의 owner를 사용자 공개 필드로 치환하는 aggregation 단계
OWNER_LOOKUP = [
    {
        "$lookup": {
            "from": "users",
            "localField": "owner",
            "foreignField": "_id",
            "pipeline": [{"$project": PUBLIC_USER_PROJECTION}],
            "as": "owner",
        }
    },
    {"$unwind": {"path": "$owner", "preserveNullAndEmptyArrays": True}},
]

class MongoDBHandler:
    def __init__(self) -> None:
        """
        MongoDBHandler 클래스 초기화.
        환경 변수를 로드하고 MongoDB 클라이언트를 생성합니다.
        """
        env_file_path = Path(__file__).resolve().parents[1] / ".env"
        load_dotenv(env_file_path)

        mongo_db = os.getenv("MONGO_DATABASE")
        if not mongo_db:
            raise ValueError("MONGO_DATABASE 환경 변수가 설정되지 않았습니다.")

        self.mongo_uri = os.getenv("MONGO_URI") or self._build_uri(mongo_db)

        try:
            self.client = AsyncIOMotorClient(self.mongo_uri)
            self.db = self.client[mongo_db]
            self.cats = self.db["cats"]
            self.users = self.db["users"]
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"MongoDB connection error: {str(e)}")

    @staticmethod
    def _build_uri(mongo_db: str) -> str:
        mongo_host = os.getenv("MONGO_HOST", "localhost")
        mongo_port = os.getenv("MONGO_PORT", "27017")
        mongo_user = os.getenv("MONGO_ADMIN_USER")
        mongo_password = os.getenv("MONGO_ADMIN_PASSWORD")
        if mongo_user and mongo_password:
            return f"mongodb://{mongo_user}:{mongo_password}@{mongo_host}:{mongo_port}/{mongo_db}?authSource=admin"
        return f"mongodb://{mongo_host}:{mongo_port}/{mongo_db}"

    async def ensure_indexes(self) -> None:
        """
        위치 검색용 2dsphere 인덱스와 사용자 고유 인덱스를 생성합니다.
        """
        await self.cats.create_index([("location", GEOSPHERE)])
        await self.cats.create_index([("owner", ASCENDING)])
        await self.users.create_index([("email", ASCENDING)], unique=True)
        await self.users.create_index([("user_name", ASCENDING)], unique=True)

    def close(self) -> None:
        self.client.close()

# Cat Methods ----------------------------------------------------------------------------------------------------
    async def get_cats_by_owner(self, owner_id: str) -> List[Dict]:
        """
        소유자 ID로 고양이 목록을 반환합니다.

        Args:
            owner_id (str): 소유자 사용자 ID

        Returns:
            List[Dict]: 고양이 문서 목록 (없으면 빈 리스트)
        """
        try:
            return await self.cats.find({"owner": ObjectId(owner_id)}).to_list(None)
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving cats by owner: {str(e)}")

    async def get_cats_within(self, polygon: Dict[str, Any]) -> List[Dict]:
        """
        GeoJSON Polygon 안에 위치한 고양이 목록을 반환합니다.

        Args:
            polygon (Dict[str, Any]): GeoJSON Polygon

        Returns:
            List[Dict]: 고양이 문서 목록
        """
        try:
            query = {"location": {"$geoWithin": {"$geometry": polygon}}}
            return await self.cats.find(query).to_list(None)
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving cats by area: {str(e)}")

    async def get_cat(self, cat_id: str) -> Optional[Dict]:
        """
        고양이 한 마리를 소유자 정보와 함께 반환합니다.

        Args:
            cat_id (str): 고양이 ID

        Returns:
            Optional[Dict]: 고양이 문서, 없으면 None
        """
        try:
            pipeline = [{"$match": {"_id": ObjectId(cat_id)}}, *OWNER_LOOKUP, {"$limit": 1}]
            cats = await self.cats.aggregate(pipeline).to_list(1)
            return cats[0] if cats else None
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving cat: {str(e)}")

    async def get_cats(self) -> List[Dict]:
        """
        모든 고양이를 소유자 정보와 함께 반환합니다.
        """
        try:
            return await self.cats.aggregate(list(OWNER_LOOKUP)).to_list(None)
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving cats: {str(e)}")

    async def create_cat(self, cat_data: Dict[str, Any]) -> Dict:
        """
        고양이를 생성합니다.

        Args:
            cat_data (Dict[str, Any]): owner, location, filename이 채워진 고양이 데이터

        Returns:
            Dict: _id가 포함된 생성된 문서
        """
        try:
            document = dict(cat_data)
            result = await self.cats.insert_one(document)
            document["_id"] = result.inserted_id
            return document
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error creating cat: {str(e)}")

    async def update_cat(self, cat_id: str, update: Dict[str, Any], owner_id: Optional[str] = None) -> Optional[Dict]:
        """
        고양이 정보를 부분 수정합니다. owner_id가 주어지면 해당 소유자의 문서만 수정합니다.

        Args:
            cat_id (str): 고양이 ID
            update (Dict[str, Any]): 수정할 필드
            owner_id (Optional[str]): 소유자 제한

        Returns:
            Optional[Dict]: 수정된 문서, 없으면 None
        """
        query = self._cat_query(cat_id, owner_id)
        try:
            if not update:
                return await self.cats.find_one(query)
            return await self.cats.find_one_and_update(
                query,
                {"$set": update},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error updating cat: {str(e)}")

    async def delete_cat(self, cat_id: str, owner_id: Optional[str] = None, with_owner: bool = False) -> Optional[Dict]:
        """
        고양이를 삭제합니다.

        Args:
            cat_id (str): 고양이 ID
            owner_id (Optional[str]): 소유자 제한
            with_owner (bool): 응답 문서의 owner를 사용자 공개 정보로 채울지 여부

        Returns:
            Optional[Dict]: 삭제된 문서, 없으면 None
        """
        try:
            cat = await self.cats.find_one_and_delete(self._cat_query(cat_id, owner_id))
            if cat is not None and with_owner and cat.get("owner") is not None:
                cat["owner"] = await self.users.find_one({"_id": cat["owner"]}, PUBLIC_USER_PROJECTION)
            return cat
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error deleting cat: {str(e)}")

    @staticmethod
    def _cat_query(cat_id: str, owner_id: Optional[str] = None) -> Dict[str, Any]:
        query: Dict[str, Any] = {"_id": ObjectId(cat_id)}
        if owner_id is not None:
            query["owner"] = ObjectId(owner_id)
        return query

# User Methods ---------------------------------------------------------------------------------------------------
    async def get_user(self, user_id: str) -> Optional[Dict]:
        """
        사용자 공개 정보를 반환합니다.

        Args:
            user_id (str): 사용자 ID

        Returns:
            Optional[Dict]: {_id, user_name, email}, 없으면 None
        """
        try:
            return await self.users.find_one({"_id": ObjectId(user_id)}, PUBLIC_USER_PROJECTION)
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving user: {str(e)}")

    async def get_users(self) -> List[Dict]:
        """
        password, role을 제외한 모든 사용자를 반환합니다.
        """
        try:
            return await self.users.find({}, {"password": 0, "role": 0}).to_list(None)
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving users: {str(e)}")

    async def get_user_by_email(self, email: str) -> Optional[Dict]:
        """
        로그인용으로 비밀번호 해시를 포함한 사용자 문서를 반환합니다.
        """
        try:
            return await self.users.find_one({"email": email})
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error retrieving user: {str(e)}")

    async def create_user(self, user_data: Dict[str, Any]) -> Dict:
        """
        사용자를 생성합니다.

        Args:
            user_data (Dict[str, Any]): 해시된 비밀번호와 role이 채워진 사용자 데이터

        Returns:
            Dict: _id가 포함된 생성된 문서
        """
        try:
            document = dict(user_data)
            result = await self.users.insert_one(document)
            document["_id"] = result.inserted_id
            return document
        except DuplicateKeyError:
            raise ErrorTools.ConflictException(detail="User name or email already in use")
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error creating user: {str(e)}")

    async def update_user(self, user_id: str, update: Dict[str, Any]) -> Optional[Dict]:
        """
        사용자 정보를 부분 수정합니다.

        Returns:
            Optional[Dict]: 수정된 문서, 없으면 None
        """
        query = {"_id": ObjectId(user_id)}
        try:
            if not update:
                return await self.users.find_one(query)
            return await self.users.find_one_and_update(
                query,
                {"$set": update},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ErrorTools.ConflictException(detail="User name or email already in use")
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error updating user: {str(e)}")

    async def delete_user(self, user_id: str) -> Optional[Dict]:
        """
        사용자를 삭제합니다.

        Returns:
            Optional[Dict]: 삭제된 문서, 없으면 None
        """
        try:
            return await self.users.find_one_and_delete({"_id": ObjectId(user_id)})
        except PyMongoError as e:
            raise ErrorTools.InternalServerErrorException(detail=f"Error deleting user: {str(e)}")
