"""Turn ActionResult failures into HTTP errors."""

from fastapi import HTTPException, status

from feeledger.app.schemas.result import ActionResult

ERROR_STATUS = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "overpayment": status.HTTP_400_BAD_REQUEST,
    "referenced_entity": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
}


def unwrap(result: ActionResult):
    if result.success:
        return result.data
    raise HTTPException(
        status_code=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
        detail=result.error,
    )
