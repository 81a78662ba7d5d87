from datetime import datetime
from uuid import UUID

from loan_manager.schemas.common import CamelModel, Pagination


class UserSummary(CamelModel):
    id: UUID
    provider_id: str
    name: str
    email: str
    is_admin: bool
    created_at: datetime | None = None


class UserPage(CamelModel):
    items: list[UserSummary]
    pagination: Pagination
