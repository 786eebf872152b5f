"""Error taxonomy for ledger operations.

Expected failures derive from LedgerError and are turned into structured
results at the action boundary. StoreError wraps persistence failures and is
the only kind that propagates to the HTTP layer as a system error.
"""

from decimal import Decimal


class LedgerError(Exception):
    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(LedgerError):
    code = "validation_error"


class OverpaymentError(LedgerError):
    code = "overpayment"

    def __init__(self, remaining: Decimal):
        self.remaining = remaining
        super().__init__(
            f"Payment exceeds the installment's remaining balance. Maximum allowed amount is {remaining:.2f}."
        )


class ReferencedEntityError(LedgerError):
    code = "referenced_entity"


class NotFoundError(LedgerError):
    code = "not_found"

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class StoreError(Exception):
    """Persistence failure surfaced as a generic system error."""

    code = "store_error"

    def __init__(self, message: str = "An unexpected error occurred. Please try again later.", retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable
