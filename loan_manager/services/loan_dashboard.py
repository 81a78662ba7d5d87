from __future__ import annotations

from decimal import Decimal

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.models.loan_application import LoanApplication, LoanStatus
from loan_manager.models.user import User
from loan_manager.schemas.dashboard import (
    DashboardKpis,
    DashboardStats,
    DashboardSummary,
    LoanStatusCounts,
)
from loan_manager.schemas.loan import LoanApplicationDTO

SAVINGS_RATE = Decimal("0.05")
RECENT_LOANS_LIMIT = 10
TWOPLACES = Decimal("0.01")


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _percent(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


async def build_dashboard_summary(db: AsyncSession) -> DashboardSummary:
    active_users = int((await db.execute(select(func.count()).select_from(User))).scalar_one() or 0)
    admin_users = int(
        (
            await db.execute(select(func.count()).select_from(User).where(User.is_admin.is_(True)))
        ).scalar_one()
        or 0
    )
    borrower_count = int(
        (await db.execute(select(func.count(distinct(LoanApplication.user_id))))).scalar_one() or 0
    )

    status_stmt = select(
        LoanApplication.status,
        func.count(),
        func.coalesce(func.sum(LoanApplication.loan_amount), 0),
    ).group_by(LoanApplication.status)
    status_rows = (await db.execute(status_stmt)).all()
    counts = {row[0]: int(row[1]) for row in status_rows}
    amounts = {row[0]: _as_decimal(row[2]) for row in status_rows}

    pending = counts.get(LoanStatus.PENDING.value, 0)
    approved = counts.get(LoanStatus.APPROVED.value, 0)
    rejected = counts.get(LoanStatus.REJECTED.value, 0)
    verified = counts.get(LoanStatus.VERIFIED.value, 0)
    total = pending + approved + rejected + verified
    disbursed_count = approved + verified

    cash_disbursed = amounts.get(LoanStatus.APPROVED.value, Decimal("0")) + amounts.get(
        LoanStatus.VERIFIED.value, Decimal("0")
    )
    cash_received = amounts.get(LoanStatus.VERIFIED.value, Decimal("0"))
    savings = (cash_received * SAVINGS_RATE).quantize(TWOPLACES)
    average_amount = float(cash_disbursed / disbursed_count) if disbursed_count else 0.0

    recent_stmt = (
        select(LoanApplication).order_by(LoanApplication.applied_at.desc()).limit(RECENT_LOANS_LIMIT)
    )
    recent_loans = (await db.execute(recent_stmt)).scalars().all()

    return DashboardSummary(
        stats=DashboardStats(
            active_users=active_users,
            borrower_count=borrower_count,
            cash_disbursed=cash_disbursed,
            cash_received=cash_received,
            repaid_loans=verified,
            savings_account=savings,
            other_accounts=admin_users,
        ),
        loan_stats=LoanStatusCounts(
            pending=pending,
            approved=approved,
            rejected=rejected,
            verified=verified,
            total=total,
        ),
        recent_loans=[LoanApplicationDTO.model_validate(loan) for loan in recent_loans],
        kpis=DashboardKpis(
            average_loan_amount=average_amount,
            approval_rate=_percent(disbursed_count, total),
            collection_rate=_percent(verified, disbursed_count),
        ),
    )
