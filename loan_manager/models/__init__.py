from loan_manager.models.loan_application import LoanApplication, LoanStatus
from loan_manager.models.user import User

__all__ = [
    "LoanApplication",
    "LoanStatus",
    "User",
]
