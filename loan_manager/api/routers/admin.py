from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.api import deps
from loan_manager.schemas.common import Pagination
from loan_manager.schemas.dashboard import DashboardSummary
from loan_manager.schemas.loan import (
    LoanApplicationDTO,
    LoanApplicationPage,
    LoanStatusUpdateRequest,
)
from loan_manager.schemas.users import UserPage, UserSummary
from loan_manager.services import loan_applications, loan_dashboard, loan_review, users

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(deps.require_admin)],
)


@router.get(
    "/dashboard-stats",
    response_model=DashboardSummary,
    summary="Aggregated loan and user figures for the admin dashboard",
)
async def get_dashboard_stats(
    db: AsyncSession = Depends(deps.get_db_session),
) -> DashboardSummary:
    return await loan_dashboard.build_dashboard_summary(db)


@router.get(
    "/loans",
    response_model=LoanApplicationPage,
    summary="List loan applications",
)
async def list_loans(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: str | None = Query(default=None, description="pending, approved, rejected, verified or all"),
    db: AsyncSession = Depends(deps.get_db_session),
) -> LoanApplicationPage:
    applications, total = await loan_applications.list_admin_applications(
        db, page=page, limit=limit, status=status
    )
    return LoanApplicationPage(
        items=[LoanApplicationDTO.model_validate(app) for app in applications],
        pagination=Pagination.build(total=total, page=page, limit=limit),
    )


@router.get(
    "/loans/{loan_id}",
    response_model=LoanApplicationDTO,
    summary="Get a loan application by id",
)
async def get_loan(
    loan_id: UUID,
    db: AsyncSession = Depends(deps.get_db_session),
) -> LoanApplicationDTO:
    application = await loan_applications.get_application(db, loan_id)
    return LoanApplicationDTO.model_validate(application)


@router.patch(
    "/loans/{loan_id}/status",
    response_model=LoanApplicationDTO,
    summary="Transition a loan application's status",
)
async def update_loan_status(
    loan_id: UUID,
    payload: LoanStatusUpdateRequest | None = None,
    db: AsyncSession = Depends(deps.get_db_session),
) -> LoanApplicationDTO:
    new_status = payload.status if payload is not None else None
    updated = await loan_review.set_status(db, loan_id, new_status)
    return LoanApplicationDTO.model_validate(updated)


@router.get(
    "/users",
    response_model=UserPage,
    summary="List users",
)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(deps.get_db_session),
) -> UserPage:
    items, total = await users.list_users(db, page=page, limit=limit)
    return UserPage(
        items=[UserSummary.model_validate(user) for user in items],
        pagination=Pagination.build(total=total, page=page, limit=limit),
    )
