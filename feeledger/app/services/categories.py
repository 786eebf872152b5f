"""Income/expense category store."""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from feeledger.app.core.errors import NotFoundError, ReferencedEntityError, ValidationError
from feeledger.app.models.finance_category import FinanceCategory
from feeledger.app.models.finance_service import FinanceService
from feeledger.app.models.finance_transaction import TRANSACTION_TYPES, FinanceTransaction


def _check_type(category_type: str) -> None:
    if category_type not in TRANSACTION_TYPES:
        raise ValidationError("Category type must be income or expense.")


def get_category(db: Session, *, organization_id: int, category_id: int) -> FinanceCategory:
    category = (
        db.query(FinanceCategory)
        .filter(FinanceCategory.id == category_id, FinanceCategory.organization_id == organization_id)
        .first()
    )
    if category is None:
        raise NotFoundError("Category")
    return category


def list_categories(db: Session, *, organization_id: int, category_type: Optional[str] = None) -> List[FinanceCategory]:
    query = db.query(FinanceCategory).filter(FinanceCategory.organization_id == organization_id)
    if category_type:
        query = query.filter(FinanceCategory.type == category_type)
    return query.order_by(FinanceCategory.sort_order.asc(), FinanceCategory.name.asc()).all()


def create_category(
    db: Session,
    *,
    organization_id: int,
    name: str,
    category_type: str,
    parent_id: Optional[int] = None,
    icon: Optional[str] = None,
) -> FinanceCategory:
    _check_type(category_type)
    name = (name or "").strip()
    if not name:
        raise ValidationError("Category name is required.")
    if parent_id is not None:
        parent = get_category(db, organization_id=organization_id, category_id=parent_id)
        if parent.type != category_type:
            raise ValidationError("Parent category must have the same type.")
    exists = (
        db.query(FinanceCategory.id)
        .filter(
            FinanceCategory.organization_id == organization_id,
            FinanceCategory.name == name,
            FinanceCategory.type == category_type,
        )
        .first()
    )
    if exists:
        raise ValidationError(f"A {category_type} category named '{name}' already exists.")
    category = FinanceCategory(
        organization_id=organization_id,
        name=name,
        type=category_type,
        parent_id=parent_id,
        icon=icon,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(
    db: Session,
    *,
    organization_id: int,
    category_id: int,
    name: Optional[str] = None,
    icon: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> FinanceCategory:
    category = get_category(db, organization_id=organization_id, category_id=category_id)
    if name is not None:
        if not name.strip():
            raise ValidationError("Category name is required.")
        category.name = name.strip()
    if icon is not None:
        category.icon = icon
    if sort_order is not None:
        category.sort_order = sort_order
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, *, organization_id: int, category_id: int) -> None:
    category = get_category(db, organization_id=organization_id, category_id=category_id)
    if category.is_system:
        raise ValidationError("System categories cannot be deleted.")
    tx_count = db.query(FinanceTransaction).filter(FinanceTransaction.category_id == category.id).count()
    service_count = db.query(FinanceService).filter(FinanceService.category_id == category.id).count()
    if tx_count > 0 or service_count > 0:
        raise ReferencedEntityError(
            "This category is used by transactions or services and cannot be deleted."
        )
    db.delete(category)
    db.commit()


def get_or_create_category(
    db: Session,
    *,
    organization_id: int,
    name: str,
    category_type: str,
    icon: Optional[str] = None,
    is_system: bool = False,
) -> FinanceCategory:
    """Idempotent lookup by (organization, name, type); does not commit."""

    def _lookup() -> Optional[FinanceCategory]:
        return (
            db.query(FinanceCategory)
            .filter(
                FinanceCategory.organization_id == organization_id,
                FinanceCategory.name == name,
                FinanceCategory.type == category_type,
            )
            .first()
        )

    category = _lookup()
    if category is not None:
        return category
    try:
        with db.begin_nested():
            category = FinanceCategory(
                organization_id=organization_id,
                name=name,
                type=category_type,
                icon=icon,
                is_system=is_system,
            )
            db.add(category)
    except IntegrityError:
        # another request created it between lookup and insert
        category = _lookup()
        if category is None:
            raise
    return category
