from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import Field, field_serializer

from loan_manager.schemas.common import CamelModel, Pagination


class LoanApplicationCreate(CamelModel):
    full_name: str = Field(min_length=1, max_length=255)
    loan_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    duration: int = Field(ge=1, le=600, description="Repayment duration in months")
    purpose: str = Field(min_length=1, max_length=2000)
    employment_status: str = Field(min_length=1, max_length=100)
    employment_address: str = Field(min_length=1, max_length=255)


class LoanApplicationDTO(CamelModel):
    id: UUID
    user_id: str
    full_name: str
    loan_amount: Decimal
    duration: int
    purpose: str
    employment_status: str
    employment_address: str
    status: str
    applied_at: datetime | None = None

    @field_serializer("loan_amount")
    def _serialize_amount(self, value: Decimal) -> str:
        return str(value)


class LoanApplicationPage(CamelModel):
    items: list[LoanApplicationDTO]
    pagination: Pagination


class LoanStatusUpdateRequest(CamelModel):
    # Any JSON value is accepted here; the review service rejects non-statuses with 400
    status: Any = None


class LoanDeleteResponse(CamelModel):
    id: UUID
    deleted: bool = True
