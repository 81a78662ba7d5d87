from loan_manager.schemas.common import CamelModel


class VerifyResponse(CamelModel):
    message: str = "User verified and stored"
    user_id: str
    email: str
    name: str
    is_admin: bool
