"""Student fee endpoints: issuing, bulk assignment, cancellation and the overdue sweep."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.student_fee import (
    BulkFeeAssign,
    BulkFeeAssignResult,
    FeeCancelRead,
    FeeCancelRequest,
    OverdueSweepRead,
    StudentFeeCreate,
    StudentFeeDetail,
    StudentFeeRead,
)
from feeledger.app.services import ledger
from feeledger.app.services import student_fees
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/student-fees", tags=["student-fees"])


@router.get("/", response_model=List[StudentFeeRead])
def list_student_fees(
    student_id: Optional[int] = None,
    academic_period: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(
        db,
        current_user,
        "list_student_fees",
        student_fees.list_student_fees,
        student_id=student_id,
        academic_period=academic_period,
        status=status,
    )
    return unwrap(result)


@router.post("/", response_model=StudentFeeDetail, status_code=status.HTTP_201_CREATED)
def create_student_fee(
    fee_in: StudentFeeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(db, current_user, "create_student_fee", student_fees.create_student_fee, **fee_in.model_dump())
    return unwrap(result)


@router.post("/bulk", response_model=BulkFeeAssignResult)
def bulk_assign_student_fees(
    bulk_in: BulkFeeAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db, current_user, "bulk_assign_student_fees", student_fees.bulk_assign_student_fees, **bulk_in.model_dump()
    )
    return {"assigned_count": unwrap(result)}


@router.post("/mark-overdue", response_model=OverdueSweepRead)
def mark_overdue(db: Session = Depends(get_db), current_user: User = Depends(get_finance_user)):
    result = run_action(db, current_user, "mark_overdue_installments", ledger.mark_overdue_installments)
    return {"updated_count": unwrap(result)}


@router.get("/{fee_id}", response_model=StudentFeeDetail)
def read_student_fee(
    fee_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(run_action(db, current_user, "get_student_fee", student_fees.get_student_fee_detail, fee_id=fee_id))


@router.post("/{fee_id}/cancel", response_model=FeeCancelRead)
def cancel_student_fee(
    fee_id: int,
    cancel_in: FeeCancelRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "cancel_student_fee",
        ledger.cancel_student_fee,
        user_id=current_user.id,
        fee_id=fee_id,
        refund=cancel_in.refund,
        refund_account_id=cancel_in.refund_account_id,
        reason=cancel_in.reason,
    )
    outcome = unwrap(result)
    refund_tx = outcome.refund_transaction
    return FeeCancelRead(
        fee=StudentFeeDetail.model_validate(outcome.fee),
        total_paid=outcome.total_paid,
        refund_transaction_id=refund_tx.id if refund_tx is not None else None,
        refund_account_id=refund_tx.account_id if refund_tx is not None else None,
    )
