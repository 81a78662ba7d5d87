from decimal import Decimal

from pydantic import field_serializer

from loan_manager.schemas.common import CamelModel
from loan_manager.schemas.loan import LoanApplicationDTO


class DashboardStats(CamelModel):
    active_users: int
    borrower_count: int
    cash_disbursed: Decimal
    cash_received: Decimal
    repaid_loans: int
    savings_account: Decimal
    other_accounts: int

    @field_serializer("cash_disbursed", "cash_received", "savings_account")
    def _serialize_money(self, value: Decimal) -> str:
        return str(value)


class LoanStatusCounts(CamelModel):
    pending: int
    approved: int
    rejected: int
    verified: int
    total: int


class DashboardKpis(CamelModel):
    average_loan_amount: float
    approval_rate: float
    collection_rate: float


class DashboardSummary(CamelModel):
    stats: DashboardStats
    loan_stats: LoanStatusCounts
    recent_loans: list[LoanApplicationDTO]
    kpis: DashboardKpis
