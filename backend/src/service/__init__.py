from . import jwt_service as JWTService
from . import mongo_client as MongoClient
from . import upload_service as UploadService

__all__ = [
    "JWTService",
    "MongoClient",
    "UploadService",
]
