from collections import Counter
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.extension import Extension
from models.user import Role, User
from pagination import apply_sorting, paginate
from routes.auth import get_current_user, require_admin
from schemas.user import (
    PasswordChange,
    PasswordReset,
    UserListResponse,
    UserResponse,
    UserRoleUpdate,
    UserStats,
    UserStatusUpdate,
    UserUpdate,
)
from security import get_password_hash, verify_password

router = APIRouter(prefix="/users", tags=["users"])

SORT_FIELDS = ("login", "name", "role", "created_at")
MIN_PASSWORD_LENGTH = 6


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def check_can_manage(actor: User, target: User) -> None:
    """Администратор не может управлять учетными записями superadmin"""
    if target.role == Role.SUPERADMIN and actor.role != Role.SUPERADMIN:
        raise HTTPException(
            status_code=403, detail="Only a superadmin can manage superadmin accounts"
        )


def check_local_password(user: User, password: str) -> None:
    if user.auth_method != "local":
        raise HTTPException(
            status_code=400, detail="Password of a directory (LDAP) account cannot be set here"
        )
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )


@router.get("", response_model=UserListResponse)
def list_users(
    search: Optional[str] = None,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    sort_by: str = "login",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Список операторов"""
    query = db.query(User)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(User.login.ilike(pattern), User.name.ilike(pattern), User.email.ilike(pattern))
        )
    if role is not None:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)

    query = apply_sorting(query, User, sort_by, sort_order, SORT_FIELDS, "login")
    return paginate(query, page, limit)


@router.get("/stats", response_model=UserStats)
def get_user_stats(
    db: Session = Depends(get_db), current_user: User = Depends(require_admin)
):
    users = db.query(User).all()
    active = sum(1 for u in users if u.is_active)
    return {
        "total": len(users),
        "active": active,
        "inactive": len(users) - active,
        "by_role": dict(Counter(u.role.value for u in users)),
        "by_auth_method": dict(Counter(u.auth_method for u in users)),
    }


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление имени и email оператора"""
    user = get_user_or_404(db, user_id)
    check_can_manage(current_user, user)

    for field, value in user_update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user


@router.patch("/{user_id}/status", response_model=UserResponse)
def update_user_status(
    user_id: int,
    status_update: UserStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Блокировка и разблокировка оператора"""
    user = get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot change your own status")
    check_can_manage(current_user, user)

    user.is_active = status_update.is_active
    db.commit()
    db.refresh(user)

    logger.info(
        f"User {user.login} {'activated' if user.is_active else 'deactivated'} "
        f"by {current_user.login}"
    )
    return user


@router.patch("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    role_update: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Смена роли. Роль superadmin выдает и снимает только superadmin"""
    user = get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    check_can_manage(current_user, user)
    if role_update.role == Role.SUPERADMIN and current_user.role != Role.SUPERADMIN:
        raise HTTPException(
            status_code=403, detail="Only a superadmin can create superadmins"
        )

    user.role = role_update.role
    db.commit()
    db.refresh(user)

    logger.warning(f"Role of {user.login} set to {user.role.value} by {current_user.login}")
    return user


@router.post("/{user_id}/change-password")
def change_password(
    user_id: int,
    password_data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Смена собственного пароля"""
    if user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only change your own password")

    check_local_password(current_user, password_data.new_password)
    if not verify_password(password_data.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.password_hash = get_password_hash(password_data.new_password)
    db.commit()
    return {"message": "Password changed successfully"}


@router.post("/{user_id}/reset-password")
def reset_password(
    user_id: int,
    password_data: PasswordReset,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Сброс пароля оператора администратором"""
    user = get_user_or_404(db, user_id)
    check_can_manage(current_user, user)
    check_local_password(user, password_data.new_password)

    user.password_hash = get_password_hash(password_data.new_password)
    db.commit()

    logger.warning(f"Password of {user.login} reset by {current_user.login}")
    return {"message": f"Password for {user.login} has been reset"}


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Удаление оператора, привязанные номера остаются без владельца"""
    user = get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    check_can_manage(current_user, user)

    db.query(Extension).filter(Extension.user_id == user.id).update(
        {Extension.user_id: None}, synchronize_session=False
    )
    login = user.login
    db.delete(user)
    db.commit()

    logger.info(f"User {login} deleted by {current_user.login}")
    return {"message": f"User {login} deleted successfully"}
