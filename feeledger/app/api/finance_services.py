"""Service catalog endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.category import CategoryType
from feeledger.app.schemas.service import FinanceServiceCreate, FinanceServiceRead, FinanceServiceUpdate
from feeledger.app.services import catalog
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/finance/services", tags=["finance"])


def _service_terms(payload: dict) -> dict:
    if "type" in payload:
        payload["service_type"] = payload.pop("type")
    return payload


@router.get("/", response_model=List[FinanceServiceRead])
def list_services(
    type: Optional[CategoryType] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(db, current_user, "list_services", catalog.list_services, service_type=type, is_active=is_active)
    return unwrap(result)


@router.get("/{service_id}", response_model=FinanceServiceRead)
def read_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(run_action(db, current_user, "get_service", catalog.get_service, service_id=service_id))


@router.post("/", response_model=FinanceServiceRead, status_code=status.HTTP_201_CREATED)
def create_service(
    service_in: FinanceServiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db, current_user, "create_service", catalog.create_service, **_service_terms(service_in.model_dump())
    )
    return unwrap(result)


@router.patch("/{service_id}", response_model=FinanceServiceRead)
def update_service(
    service_id: int,
    service_in: FinanceServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "update_service",
        catalog.update_service,
        service_id=service_id,
        **_service_terms(service_in.model_dump(exclude_unset=True)),
    )
    return unwrap(result)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    unwrap(run_action(db, current_user, "delete_service", catalog.delete_service, service_id=service_id))
