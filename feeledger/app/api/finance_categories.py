"""Finance category endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.category import CategoryType, FinanceCategoryCreate, FinanceCategoryRead, FinanceCategoryUpdate
from feeledger.app.services import categories
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/finance/categories", tags=["finance"])


@router.get("/", response_model=List[FinanceCategoryRead])
def list_categories(
    type: Optional[CategoryType] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(db, current_user, "list_categories", categories.list_categories, category_type=type)
    return unwrap(result)


@router.post("/", response_model=FinanceCategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    category_in: FinanceCategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "create_category",
        categories.create_category,
        name=category_in.name,
        category_type=category_in.type,
        parent_id=category_in.parent_id,
        icon=category_in.icon,
    )
    return unwrap(result)


@router.patch("/{category_id}", response_model=FinanceCategoryRead)
def update_category(
    category_id: int,
    category_in: FinanceCategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "update_category",
        categories.update_category,
        category_id=category_id,
        **category_in.model_dump(exclude_unset=True),
    )
    return unwrap(result)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    unwrap(run_action(db, current_user, "delete_category", categories.delete_category, category_id=category_id))
