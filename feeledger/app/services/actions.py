"""Boundary between callers and the ledger services.

Expected failures come back as ActionResult values; database failures are
logged with their context and re-raised as StoreError so no schema detail
reaches the caller.
"""

import logging
from typing import Any, Callable

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from feeledger.app.core.errors import LedgerError, StoreError
from feeledger.app.models.user import User
from feeledger.app.schemas.result import ActionResult

logger = logging.getLogger(__name__)


def run_action(db: Session, user: User, action: str, fn: Callable[..., Any], *args, **kwargs) -> ActionResult:
    """Call `fn(db, *args, organization_id=..., **kwargs)` for the user's organization."""
    organization_id = user.organization_id
    try:
        data = fn(db, *args, organization_id=organization_id, **kwargs)
    except LedgerError as exc:
        db.rollback()
        logger.info("%s rejected (org=%s user=%s): %s", action, organization_id, user.id, exc)
        return ActionResult.fail(str(exc), exc.code)
    except OperationalError as exc:
        db.rollback()
        logger.exception("%s failed in the store (org=%s user=%s)", action, organization_id, user.id)
        raise StoreError(retryable=True) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s failed in the store (org=%s user=%s)", action, organization_id, user.id)
        raise StoreError() from exc
    return ActionResult.ok(data)
