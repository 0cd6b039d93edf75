from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from database import get_db
from models.config_item import DATA_TYPES, ConfigCategory, ConfigItem
from models.user import User
from routes.auth import get_current_user, require_admin
from schemas.config_item import (
    ConfigCategoryCreate,
    ConfigCategoryResponse,
    ConfigCategoryWithItems,
    ConfigItemCreate,
    ConfigItemResponse,
    ConfigItemUpdate,
    ConfigValueUpdate,
)

router = APIRouter(prefix="/config", tags=["config"])


def item_response(item: ConfigItem) -> dict:
    return {
        "id": item.id,
        "category": item.category.name,
        "name": item.name,
        "display_name": item.display_name,
        "description": item.description,
        # секреты наружу не отдаются
        "value": "***" if item.is_secret and item.value else item.parsed_value,
        "display_value": item.display_value,
        "default_value": None if item.is_secret else item.default_value,
        "data_type": item.data_type,
        "is_required": item.is_required,
        "is_secret": item.is_secret,
        "is_read_only": item.is_read_only,
        "order": item.order,
        "is_active": item.is_active,
        "updated_at": item.updated_at,
    }


def get_item_or_404(db: Session, category: str, name: str) -> ConfigItem:
    item = (
        db.query(ConfigItem)
        .join(ConfigCategory)
        .filter(ConfigCategory.name == category, ConfigItem.name == name)
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail=f"Config item {category}.{name} not found")
    return item


def set_item_value(item: ConfigItem, value) -> None:
    if item.is_read_only:
        raise HTTPException(
            status_code=400, detail=f"Config item {item.name} is read-only"
        )
    if not item.is_valid_value(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid value for {item.name}: expected {item.data_type}",
        )
    item.set_value(value)


@router.get("", response_model=list[ConfigCategoryWithItems])
def get_all_config(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    """Все активные категории с активными параметрами"""
    categories = (
        db.query(ConfigCategory)
        .filter(ConfigCategory.is_active.is_(True))
        .order_by(ConfigCategory.order, ConfigCategory.name)
        .all()
    )
    return [
        {
            **ConfigCategoryResponse.model_validate(category).model_dump(),
            "items": [item_response(i) for i in category.items if i.is_active],
        }
        for category in categories
    ]


@router.get("/categories", response_model=list[ConfigCategoryResponse])
def get_categories(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return db.query(ConfigCategory).order_by(ConfigCategory.order, ConfigCategory.name).all()


@router.post("/categories", response_model=ConfigCategoryResponse, status_code=201)
def create_category(
    category_data: ConfigCategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if db.query(ConfigCategory).filter(ConfigCategory.name == category_data.name).first():
        raise HTTPException(
            status_code=409, detail=f"Category '{category_data.name}' already exists"
        )

    category = ConfigCategory(**category_data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.post("", response_model=ConfigItemResponse, status_code=201)
def create_config_item(
    item_data: ConfigItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание параметра конфигурации"""
    category = (
        db.query(ConfigCategory).filter(ConfigCategory.name == item_data.category).first()
    )
    if not category:
        raise HTTPException(status_code=404, detail=f"Category '{item_data.category}' not found")

    if item_data.data_type not in DATA_TYPES:
        raise HTTPException(
            status_code=400, detail=f"Unsupported data type: {item_data.data_type}"
        )

    exists = (
        db.query(ConfigItem)
        .filter(ConfigItem.category_id == category.id, ConfigItem.name == item_data.name)
        .first()
    )
    if exists:
        raise HTTPException(
            status_code=409,
            detail=f"Config item {category.name}.{item_data.name} already exists",
        )

    data = item_data.model_dump(exclude={"category", "value", "default_value"})
    item = ConfigItem(**data, category=category, created_by=current_user.login)

    for value in (item_data.value, item_data.default_value):
        if not item.is_valid_value(value):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid value for {item.name}: expected {item.data_type}",
            )
    item.set_value(item_data.default_value)
    item.default_value = item.value
    item.set_value(item_data.value)

    db.add(item)
    db.commit()
    db.refresh(item)

    logger.info(f"Config item {category.name}.{item.name} created by {current_user.login}")
    return item_response(item)


@router.get("/{category}/{name}", response_model=ConfigItemResponse)
def get_config_item(
    category: str,
    name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return item_response(get_item_or_404(db, category, name))


@router.put("/{category}/{name}", response_model=ConfigItemResponse)
def update_config_item(
    category: str,
    name: str,
    item_update: ConfigItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление описания и/или значения параметра"""
    item = get_item_or_404(db, category, name)
    if item.is_read_only:
        raise HTTPException(status_code=400, detail=f"Config item {item.name} is read-only")

    update_data = item_update.model_dump(exclude_unset=True, exclude_none=True)
    if "value" in update_data:
        set_item_value(item, update_data.pop("value"))
    if "default_value" in update_data:
        default_value = update_data.pop("default_value")
        if not item.is_valid_value(default_value):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid default value for {item.name}: expected {item.data_type}",
            )
        current = item.value
        item.set_value(default_value)
        item.default_value, item.value = item.value, current

    for field, value in update_data.items():
        setattr(item, field, value)
    item.updated_by = current_user.login

    db.commit()
    db.refresh(item)
    return item_response(item)


@router.put("/{category}/{name}/value", response_model=ConfigItemResponse)
def update_config_value(
    category: str,
    name: str,
    value_update: ConfigValueUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    item = get_item_or_404(db, category, name)
    set_item_value(item, value_update.value)
    item.updated_by = current_user.login

    db.commit()
    db.refresh(item)

    logger.info(f"Config value {category}.{name} changed by {current_user.login}")
    return item_response(item)
