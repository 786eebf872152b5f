"""Student roster endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.student import Student
from feeledger.app.models.user import User
from feeledger.app.schemas.student import StudentCreate, StudentRead

router = APIRouter(prefix="/students", tags=["students"])


@router.post("/", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
def create_student(
    student_in: StudentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    full_name = student_in.full_name.strip()
    if not full_name:
        raise HTTPException(status_code=400, detail="Student name is required")
    student = Student(
        organization_id=current_user.organization_id,
        full_name=full_name,
        email=student_in.email,
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


@router.get("/", response_model=List[StudentRead])
def list_students(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Student).filter(Student.organization_id == current_user.organization_id)
    if not include_inactive:
        query = query.filter(Student.is_active.is_(True))
    return query.order_by(Student.full_name.asc(), Student.id.asc()).all()
