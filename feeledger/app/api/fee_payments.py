"""Fee payment endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.fee_payment import FeePaymentCreate, FeePaymentPage, FeePaymentRead, FeeReceiptRead, PaymentMethod
from feeledger.app.services import fee_payments
from feeledger.app.services import ledger
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/fee-payments", tags=["fee-payments"])


@router.get("/", response_model=FeePaymentPage)
def list_fee_payments(
    student_id: Optional[int] = None,
    installment_id: Optional[int] = None,
    payment_method: Optional[PaymentMethod] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(
        db,
        current_user,
        "list_fee_payments",
        fee_payments.list_fee_payments,
        student_id=student_id,
        installment_id=installment_id,
        payment_method=payment_method,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    rows, total = unwrap(result)
    return {"data": rows, "count": total}


@router.post("/", response_model=FeePaymentRead, status_code=status.HTTP_201_CREATED)
def create_fee_payment(
    payment_in: FeePaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "create_fee_payment",
        ledger.create_fee_payment,
        user_id=current_user.id,
        **payment_in.model_dump(),
    )
    return unwrap(result)


@router.get("/receipt", response_model=FeeReceiptRead)
def read_latest_installment_receipt(
    installment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(
        db, current_user, "get_receipt_data", fee_payments.get_receipt_data, installment_id=installment_id
    )
    return unwrap(result)


@router.get("/{payment_id}/receipt", response_model=FeeReceiptRead)
def read_receipt(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(run_action(db, current_user, "get_receipt_data", fee_payments.get_receipt_data, payment_id=payment_id))
