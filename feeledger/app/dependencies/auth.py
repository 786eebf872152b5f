"""Authentication dependencies for retrieving the current user."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from feeledger.app.core.security import decode_access_token
from feeledger.app.db.session import get_db
from feeledger.app.models.user import User


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    # a token issued for another organization is not valid for this user any more
    org_claim = payload.get("org")
    if org_claim is not None and str(user.organization_id) != str(org_claim):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def get_finance_user(current_user: User = Depends(get_current_user)) -> User:
    """Only admins and accountants may change finance data."""
    if not current_user.can_manage_finance:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Finance access required",
        )
    return current_user
