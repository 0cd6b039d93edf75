from collections import Counter
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.dialplan import Dialplan, validate_dialplan
from models.domain import Domain
from models.user import User
from pagination import apply_sorting, paginate
from routes.auth import get_current_user, require_admin
from schemas.dialplan import (
    DialplanCreate,
    DialplanFromTemplate,
    DialplanListResponse,
    DialplanPriorityItem,
    DialplanResponse,
    DialplanStats,
    DialplanUpdate,
)

router = APIRouter(prefix="/freeswitch/dialplans", tags=["dialplans"])

SORT_FIELDS = ("name", "context", "priority", "created_at", "updated_at")


def get_dialplan_or_404(db: Session, dialplan_id: int) -> Dialplan:
    dialplan = db.query(Dialplan).filter(Dialplan.id == dialplan_id).first()
    if not dialplan:
        raise HTTPException(status_code=404, detail="Dialplan not found")
    return dialplan


def check_dialplan(db: Session, data: dict, exclude: Optional[Dialplan] = None) -> None:
    """Проверки перед сохранением: структура правила, домен, уникальность имени в контексте"""
    errors = validate_dialplan(data)
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    domain_id = data.get("domain_id")
    if domain_id is not None:
        if not db.query(Domain).filter(Domain.id == domain_id).first():
            raise HTTPException(status_code=404, detail="Domain not found")

    query = db.query(Dialplan).filter(
        Dialplan.name == data["name"], Dialplan.context == data["context"]
    )
    if exclude is not None:
        query = query.filter(Dialplan.id != exclude.id)
    if query.first():
        raise HTTPException(
            status_code=409,
            detail=(
                f"Dialplan with name '{data['name']}' already exists "
                f"in context '{data['context']}'"
            ),
        )


def create_dialplan_record(db: Session, data: dict, user: User) -> Dialplan:
    check_dialplan(db, data)

    dialplan = Dialplan(**data, created_by=user.id)
    db.add(dialplan)
    db.commit()
    db.refresh(dialplan)

    logger.info(f"Dialplan {dialplan.context}/{dialplan.name} created by {user.login}")
    return dialplan


@router.post("", response_model=DialplanResponse, status_code=201)
def create_dialplan(
    dialplan_data: DialplanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание правила маршрутизации"""
    return create_dialplan_record(db, dialplan_data.model_dump(), current_user)


@router.get("", response_model=DialplanListResponse)
def list_dialplans(
    search: Optional[str] = None,
    context: Optional[str] = None,
    domain_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    is_template: Optional[bool] = None,
    sort_by: str = "priority",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Dialplan)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Dialplan.name.ilike(pattern),
                Dialplan.display_name.ilike(pattern),
                Dialplan.description.ilike(pattern),
            )
        )
    if context:
        query = query.filter(Dialplan.context == context)
    if domain_id is not None:
        query = query.filter(Dialplan.domain_id == domain_id)
    if is_active is not None:
        query = query.filter(Dialplan.is_active == is_active)
    if is_template is not None:
        query = query.filter(Dialplan.is_template == is_template)

    query = apply_sorting(query, Dialplan, sort_by, sort_order, SORT_FIELDS, "priority")
    return paginate(query, page, limit)


@router.get("/stats", response_model=DialplanStats)
def get_dialplan_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    dialplans = db.query(Dialplan).all()
    active = sum(1 for d in dialplans if d.is_active)
    return {
        "total": len(dialplans),
        "active": active,
        "inactive": len(dialplans) - active,
        "templates": sum(1 for d in dialplans if d.is_template),
        "by_context": dict(Counter(d.context for d in dialplans)),
    }


@router.get("/by-context/{context}", response_model=list[DialplanResponse])
def get_dialplans_by_context(
    context: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Активные правила контекста в порядке приоритета"""
    return (
        db.query(Dialplan)
        .filter(Dialplan.context == context, Dialplan.is_active.is_(True))
        .order_by(Dialplan.priority, Dialplan.name)
        .all()
    )


@router.put("/bulk-priority")
def update_dialplan_priority(
    items: list[DialplanPriorityItem],
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Массовое изменение приоритетов"""
    dialplans = {
        d.id: d
        for d in db.query(Dialplan).filter(Dialplan.id.in_([i.id for i in items])).all()
    }
    missing = [i.id for i in items if i.id not in dialplans]
    if missing:
        raise HTTPException(status_code=404, detail=f"Dialplans not found: {missing}")

    for item in items:
        dialplans[item.id].priority = item.priority
        dialplans[item.id].updated_by = current_user.id

    db.commit()
    return {"message": f"Priority updated for {len(items)} dialplan(s)"}


@router.get("/{dialplan_id}", response_model=DialplanResponse)
def get_dialplan(
    dialplan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_dialplan_or_404(db, dialplan_id)


@router.post(
    "/{dialplan_id}/create-from-template", response_model=DialplanResponse, status_code=201
)
def create_dialplan_from_template(
    dialplan_id: int,
    overrides: DialplanFromTemplate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Копия шаблона с переопределенными полями"""
    template = get_dialplan_or_404(db, dialplan_id)
    if not template.is_template:
        raise HTTPException(status_code=409, detail="Source dialplan is not a template")

    data = template.as_template_data()
    data.update(overrides.model_dump(exclude_unset=True, exclude_none=True))
    data.setdefault("name", f"{template.name}_copy")
    data["is_template"] = False

    return create_dialplan_record(db, data, current_user)


@router.put("/{dialplan_id}", response_model=DialplanResponse)
def update_dialplan(
    dialplan_id: int,
    dialplan_update: DialplanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление правила маршрутизации"""
    dialplan = get_dialplan_or_404(db, dialplan_id)

    update_data = dialplan_update.model_dump(exclude_unset=True, exclude_none=True)
    merged = {"name": dialplan.name, **dialplan.as_template_data(), **update_data}
    check_dialplan(db, merged, exclude=dialplan)

    for field, value in update_data.items():
        setattr(dialplan, field, value)
    dialplan.updated_by = current_user.id

    db.commit()
    db.refresh(dialplan)
    return dialplan


@router.delete("/{dialplan_id}")
def delete_dialplan(
    dialplan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    dialplan = get_dialplan_or_404(db, dialplan_id)

    name = dialplan.name
    db.delete(dialplan)
    db.commit()

    logger.info(f"Dialplan {name} deleted by {current_user.login}")
    return {"message": f"Dialplan {name} deleted successfully"}
