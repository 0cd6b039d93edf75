from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.orm import Session

from config import config
from ldap_auth import LDAPAuth, get_ldap_auth
from models.user import Role, User
from schemas.auth import LDAPLoginRequest, TokenRefresh, UserLogin, UserRegister, Token
from schemas.user import UserResponse
from security import (
    verify_password,
    get_password_hash,
    create_tokens,
    verify_token,
)
from database import get_db

router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _user_from_token(token: str, db: Session) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token(token, is_refresh=False)
    if payload is None:
        raise credentials_exception

    user_id: int = payload.get("user_id")
    if user_id is None:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    return _user_from_token(credentials.credentials, db)


def require_roles(*roles: Role):
    """Зависимость: пропускает только операторов с одной из ролей"""

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return checker


require_admin = require_roles(Role.SUPERADMIN, Role.ADMIN)
require_superadmin = require_roles(Role.SUPERADMIN)


@router.post("/register", response_model=UserResponse)
def register(
    user_data: UserRegister,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
):
    """Регистрация оператора. Первый оператор становится superadmin"""
    is_first_user = db.query(User).count() == 0

    if is_first_user:
        role = Role.SUPERADMIN
    else:
        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        creator = _user_from_token(credentials.credentials, db)
        if creator.role not in (Role.SUPERADMIN, Role.ADMIN):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        role = user_data.role or Role.ADMIN
        if role == Role.SUPERADMIN and creator.role != Role.SUPERADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only a superadmin can create superadmins",
            )

    existing_user = db.query(User).filter(User.login == user_data.login).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Login already registered"
        )

    user = User(
        login=user_data.login,
        password_hash=get_password_hash(user_data.password),
        name=user_data.name,
        email=user_data.email,
        role=role,
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered operator {user.login} with role {role.value}")
    return user


@router.post("/login", response_model=Token)
def login(user_data: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.login == user_data.login).first()
    if (
        not user
        or not user.is_active
        or not verify_password(user_data.password, user.password_hash)
    ):
        logger.warning(f"Failed login for {user_data.login}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Создаем пару токенов
    return create_tokens(user_id=user.id, login=user.login, role=user.role.value)


@router.post("/ldap/login", response_model=Token)
def ldap_login(
    user_data: LDAPLoginRequest,
    db: Session = Depends(get_db),
    ldap: LDAPAuth = Depends(get_ldap_auth),
):
    """Вход через LDAP. Новый пользователь каталога получает роль viewer"""
    if not config.LDAP_ENABLED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="LDAP authentication is disabled"
        )

    user_info = ldap.authenticate(user_data.username, user_data.password)
    if user_info is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.login == user_data.username).first()
    if user is None:
        user = User(
            login=user_data.username,
            name=user_info["full_name"],
            email=user_info["email"],
            auth_method="ldap",
            role=Role.VIEWER,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Provisioned LDAP operator {user.login}")
    elif not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return create_tokens(user_id=user.id, login=user.login, role=user.role.value)


@router.post("/refresh", response_model=Token)
def refresh_token(token_data: TokenRefresh, db: Session = Depends(get_db)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid refresh token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    # Проверяем refresh токен
    payload = verify_token(token_data.refresh_token, is_refresh=True)
    if payload is None:
        raise credentials_exception

    user_id: int = payload.get("user_id")
    login: str = payload.get("login")

    if user_id is None or login is None:
        raise credentials_exception

    # Проверяем, существует ли пользователь
    user = db.query(User).filter(User.id == user_id, User.login == login).first()
    if user is None or not user.is_active:
        raise credentials_exception

    # Роль берется из базы, а не из старого токена
    return create_tokens(user_id=user.id, login=user.login, role=user.role.value)


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return current_user
