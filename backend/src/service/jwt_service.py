import os
import jwt
import logging
from pathlib import Path
from dotenv import load_dotenv
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from passlib.context import CryptContext

from domain import Schema

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12

class JWTHandler:
    """
    JWT 토큰 발급/검증 및 비밀번호 해시 서비스
    """

    def __init__(self, secret_key: Optional[str] = None):
        env_file_path = Path(__file__).resolve().parents[1] / ".env"
        load_dotenv(env_file_path)

        # 환경 변수에서 JWT 설정 가져오기
        self.secret_key = secret_key or os.getenv("JWT_SECRET_KEY")
        self.algorithm = os.getenv("JWT_ALGORITHM", "HS256")

        expire_minutes_str = os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES")
        if expire_minutes_str is None or expire_minutes_str == "":
            self.access_token_expire_minutes = 60
        else:
            try:
                self.access_token_expire_minutes = int(expire_minutes_str)
            except ValueError:
                self.access_token_expire_minutes = 60
                logger.warning(f"ACCESS_TOKEN_EXPIRE_MINUTES 값이 잘못됨 ({expire_minutes_str}). 기본값 60분 사용")

        if not self.secret_key:
            raise ValueError("JWT_SECRET_KEY가 설정되지 않았습니다.")

        # bcrypt 비밀번호 암호화 컨텍스트 (cost factor 12)
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

        logger.info(f"JWT 서비스 초기화 완료 - 만료시간: Access({self.access_token_expire_minutes}분)")

    def hash_password(self, password: str) -> str:
        """
        비밀번호 해시화

        Args:
            password (str): 평문 비밀번호

        Returns:
            str: 해시화된 비밀번호
        """
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        비밀번호 검증

        Args:
            plain_password (str): 평문 비밀번호
            hashed_password (str): 해시화된 비밀번호

        Returns:
            bool: 비밀번호가 일치하는지 여부
        """
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(self, user: Dict[str, Any]) -> str:
        """
        액세스 토큰 생성. 토큰에는 세션에 필요한 사용자 정보가 포함됩니다.

        Args:
            user (Dict[str, Any]): _id, user_name, email, role을 가진 사용자 문서

        Returns:
            str: 생성된 JWT 액세스 토큰
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.access_token_expire_minutes)
        to_encode = {
            "sub": str(user["_id"]),
            "user_name": user["user_name"],
            "email": user["email"],
            "role": user.get("role", Schema.RoleEnum.USER.value),
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        토큰 검증

        Args:
            token (str): JWT 토큰

        Returns:
            Optional[Dict[str, Any]]: 검증된 토큰의 페이로드, None if 검증 실패
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Expired access token")
            return None
        except jwt.InvalidTokenError:
            return None

    def extract_session_user(self, token: str) -> Optional[Schema.SessionUser]:
        """
        토큰에서 세션 사용자 정보 추출 (DB 조회 없음)

        Args:
            token (str): JWT 토큰

        Returns:
            Optional[Schema.SessionUser]: 세션 사용자, 토큰이 유효하지 않으면 None
        """
        payload = self.verify_token(token)
        if not payload or payload.get("type") != "access":
            return None
        try:
            return Schema.SessionUser(
                _id=payload["sub"],
                user_name=payload["user_name"],
                email=payload["email"],
                role=payload.get("role", Schema.RoleEnum.USER.value),
            )
        except (KeyError, ValueError):
            return None
