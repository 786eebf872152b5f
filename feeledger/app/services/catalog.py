"""Service catalog: priced, VAT-rated billable items.

Listing reads through a per-organization cache; every write invalidates the
organization's entries.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from feeledger.app.core.cache import ScopedTTLCache
from feeledger.app.core.errors import NotFoundError, ReferencedEntityError, ValidationError
from feeledger.app.core.money import round2, to_decimal
from feeledger.app.core.settings import get_settings
from feeledger.app.models.finance_service import FinanceService
from feeledger.app.models.finance_transaction import TRANSACTION_TYPES, FinanceTransaction
from feeledger.app.models.student_fee import StudentFee
from feeledger.app.schemas.service import FinanceServiceRead
from feeledger.app.services.categories import get_category

logger = logging.getLogger(__name__)

service_cache = ScopedTTLCache(ttl_seconds=get_settings().service_cache_ttl_seconds)

_UNSET = object()


def _validate_price_and_vat(unit_price: Optional[Decimal], vat_rate: Optional[Decimal]) -> None:
    if vat_rate is not None and (to_decimal(vat_rate) < 0 or to_decimal(vat_rate) > 100):
        raise ValidationError("VAT rate must be between 0 and 100.")
    if unit_price is not None and to_decimal(unit_price) < 0:
        raise ValidationError("Unit price cannot be negative.")


def _check_category(db: Session, organization_id: int, category_id: Optional[int], service_type: str) -> None:
    if category_id is None:
        return
    category = get_category(db, organization_id=organization_id, category_id=category_id)
    if category.type != service_type:
        raise ValidationError("Service category must match the service type.")


def get_service(db: Session, *, organization_id: int, service_id: int) -> FinanceService:
    service = (
        db.query(FinanceService)
        .options(joinedload(FinanceService.category))
        .filter(FinanceService.id == service_id, FinanceService.organization_id == organization_id)
        .first()
    )
    if service is None:
        raise NotFoundError("Service")
    return service


def list_services(
    db: Session,
    *,
    organization_id: int,
    service_type: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[FinanceServiceRead]:
    def _load() -> List[FinanceServiceRead]:
        query = (
            db.query(FinanceService)
            .options(joinedload(FinanceService.category))
            .filter(FinanceService.organization_id == organization_id)
        )
        if service_type:
            query = query.filter(FinanceService.type == service_type)
        if is_active is not None:
            query = query.filter(FinanceService.is_active.is_(is_active))
        return [FinanceServiceRead.model_validate(row) for row in query.order_by(FinanceService.name.asc()).all()]

    return service_cache.get_or_load(organization_id, (service_type, is_active), _load)


def create_service(
    db: Session,
    *,
    organization_id: int,
    name: str,
    service_type: str,
    unit_price: Decimal | float | int | str,
    vat_rate: Decimal | float | int | str = 0,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
) -> FinanceService:
    _validate_price_and_vat(to_decimal(unit_price), to_decimal(vat_rate))
    if service_type not in TRANSACTION_TYPES:
        raise ValidationError("Service type must be income or expense.")
    name = (name or "").strip()
    if not name:
        raise ValidationError("Service name is required.")
    _check_category(db, organization_id, category_id, service_type)
    service = FinanceService(
        organization_id=organization_id,
        name=name,
        type=service_type,
        category_id=category_id,
        unit_price=round2(unit_price),
        vat_rate=round2(vat_rate),
        description=(description or "").strip() or None,
    )
    db.add(service)
    db.commit()
    service_cache.invalidate(organization_id)
    db.refresh(service)
    logger.info("Created service %s '%s' (org=%s)", service.id, service.name, organization_id)
    return service


def update_service(
    db: Session,
    *,
    organization_id: int,
    service_id: int,
    name: Optional[str] = None,
    service_type: Optional[str] = None,
    category_id=_UNSET,
    unit_price: Decimal | float | int | str | None = None,
    vat_rate: Decimal | float | int | str | None = None,
    is_active: Optional[bool] = None,
    description=_UNSET,
) -> FinanceService:
    _validate_price_and_vat(unit_price, vat_rate)
    service = get_service(db, organization_id=organization_id, service_id=service_id)
    if service_type is not None:
        if service_type not in TRANSACTION_TYPES:
            raise ValidationError("Service type must be income or expense.")
        service.type = service_type
    if name is not None:
        if not name.strip():
            raise ValidationError("Service name is required.")
        service.name = name.strip()
    if category_id is not _UNSET:
        _check_category(db, organization_id, category_id, service.type)
        service.category_id = category_id
    if unit_price is not None:
        service.unit_price = round2(unit_price)
    if vat_rate is not None:
        service.vat_rate = round2(vat_rate)
    if is_active is not None:
        service.is_active = is_active
    if description is not _UNSET:
        service.description = (description or "").strip() or None
    db.commit()
    service_cache.invalidate(organization_id)
    db.refresh(service)
    return service


def delete_service(db: Session, *, organization_id: int, service_id: int) -> None:
    """Delete an unreferenced service; referenced ones must be deactivated instead."""
    service = get_service(db, organization_id=organization_id, service_id=service_id)
    tx_count = db.query(FinanceTransaction).filter(FinanceTransaction.service_id == service.id).count()
    fee_count = db.query(StudentFee).filter(StudentFee.service_id == service.id).count()
    if tx_count > 0 or fee_count > 0:
        raise ReferencedEntityError(
            "This service is referenced by transactions or student fees and cannot be deleted. "
            "Deactivate it instead."
        )
    db.delete(service)
    db.commit()
    service_cache.invalidate(organization_id)
    logger.info("Deleted service %s (org=%s)", service_id, organization_id)
