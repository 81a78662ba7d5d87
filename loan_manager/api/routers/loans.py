from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.api import deps
from loan_manager.core.response_envelope import success_envelope
from loan_manager.schemas.loan import (
    LoanApplicationCreate,
    LoanApplicationDTO,
    LoanDeleteResponse,
)
from loan_manager.services import loan_applications

router = APIRouter(prefix="/loan", tags=["loans"])


@router.post(
    "",
    response_model=LoanApplicationDTO,
    status_code=201,
    summary="Submit a loan application",
)
async def create_loan_application(
    payload: LoanApplicationCreate,
    provider_id: str = Depends(deps.get_current_identity),
    db: AsyncSession = Depends(deps.get_db_session),
) -> LoanApplicationDTO:
    application = await loan_applications.create_application(db, provider_id, payload)
    return LoanApplicationDTO.model_validate(application)


@router.get(
    "/my-loans",
    response_model=list[LoanApplicationDTO],
    summary="List the caller's loan applications",
)
async def list_my_loans(
    provider_id: str = Depends(deps.get_current_identity),
    db: AsyncSession = Depends(deps.get_db_session),
) -> list[LoanApplicationDTO]:
    applications = await loan_applications.list_for_user(db, provider_id)
    return [LoanApplicationDTO.model_validate(app) for app in applications]


@router.get(
    "/{user_id}",
    response_model=list[LoanApplicationDTO],
    summary="List loan applications for a user (owner or admin)",
)
async def list_user_loans(
    user_id: str,
    provider_id: str = Depends(deps.get_current_identity),
    db: AsyncSession = Depends(deps.get_db_session),
) -> list[LoanApplicationDTO]:
    applications = await loan_applications.list_for_caller(db, user_id, provider_id)
    return [LoanApplicationDTO.model_validate(app) for app in applications]


@router.delete(
    "/{loan_id}",
    summary="Delete a loan application (owner or admin)",
)
async def delete_loan_application(
    loan_id: UUID,
    provider_id: str = Depends(deps.get_current_identity),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    await loan_applications.delete_application(db, loan_id, provider_id)
    return success_envelope(
        LoanDeleteResponse(id=loan_id).model_dump(mode="json", by_alias=True),
        code="deleted",
        message="Loan application deleted successfully",
    )
