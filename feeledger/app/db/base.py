from feeledger.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from feeledger.app.models.organization import Organization  # noqa: F401
from feeledger.app.models.user import User  # noqa: F401
from feeledger.app.models.student import Student  # noqa: F401
from feeledger.app.models.finance_settings import FinanceSettings  # noqa: F401
from feeledger.app.models.finance_account import FinanceAccount  # noqa: F401
from feeledger.app.models.finance_category import FinanceCategory  # noqa: F401
from feeledger.app.models.finance_service import FinanceService  # noqa: F401
from feeledger.app.models.student_fee import StudentFee  # noqa: F401
from feeledger.app.models.fee_installment import FeeInstallment  # noqa: F401
from feeledger.app.models.fee_payment import FeePayment  # noqa: F401
from feeledger.app.models.finance_transaction import FinanceTransaction  # noqa: F401
