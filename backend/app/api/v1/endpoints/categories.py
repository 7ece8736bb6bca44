"""Category endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.category import CategoryDeleteOut, CategoryIn, CategoryOut
from app.services import categories as category_service

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.post(
    "",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    description="Names are trimmed and lowercased; duplicates (any case) are rejected.",
)
async def create_category(
    category_in: CategoryIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> CategoryOut:
    category = category_service.create_category(db, category_in.name)
    return CategoryOut.model_validate(category)


@router.get("", response_model=list[CategoryOut], summary="List categories")
async def list_categories(db: Session = Depends(get_db)) -> list[CategoryOut]:
    return [CategoryOut.model_validate(c) for c in category_service.list_categories(db)]


@router.get("/{category_id}", response_model=CategoryOut, summary="Get category")
async def get_category(category_id: str, db: Session = Depends(get_db)) -> CategoryOut:
    return CategoryOut.model_validate(category_service.get_category(db, category_id))


@router.put("/{category_id}", response_model=CategoryOut, summary="Rename category")
async def update_category(
    category_id: str,
    category_in: CategoryIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> CategoryOut:
    category = category_service.update_category(db, category_id, category_in.name)
    return CategoryOut.model_validate(category)


@router.delete(
    "/{category_id}",
    response_model=CategoryDeleteOut,
    summary="Delete category",
    description="Also removes the category from every question that references it.",
)
async def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> CategoryDeleteOut:
    category = category_service.delete_category(db, category_id)
    return CategoryDeleteOut(
        message="Category deleted successfully",
        category=CategoryOut.model_validate(category),
    )
