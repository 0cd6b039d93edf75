from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from typing import Any, Optional
from config import config

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    # у LDAP-пользователей локального пароля нет
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _secret_for(token_type: str) -> str:
    return config.REFRESH_SECRET_KEY if token_type == REFRESH else config.SECRET_KEY


def _lifetime_for(token_type: str) -> timedelta:
    if token_type == REFRESH:
        return timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)
    return timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)


def encode_token(
    claims: dict, token_type: str, expires_delta: Optional[timedelta] = None
) -> str:
    payload = dict(claims)
    payload["exp"] = datetime.utcnow() + (expires_delta or _lifetime_for(token_type))
    payload["type"] = token_type
    return jwt.encode(payload, _secret_for(token_type), algorithm=config.ALGORITHM)


def verify_token(token: str, is_refresh: bool = False) -> Optional[dict[str, Any]]:
    """Payload токена нужного типа или None"""
    expected = REFRESH if is_refresh else ACCESS
    try:
        payload = jwt.decode(token, _secret_for(expected), algorithms=[config.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != expected:
        return None
    return payload


def create_tokens(user_id: int, login: str, role: str) -> dict[str, str]:
    """Создает пару access и refresh токенов"""
    claims = {"user_id": user_id, "login": login, "role": role}
    return {
        "access_token": encode_token(claims, ACCESS),
        "refresh_token": encode_token(claims, REFRESH),
        "token_type": "bearer",
    }
