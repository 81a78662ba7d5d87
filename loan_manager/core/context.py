from contextvars import ContextVar

UNSET = "-"

request_id_var: ContextVar[str] = ContextVar("request_id", default=UNSET)
user_id_var: ContextVar[str] = ContextVar("user_id", default=UNSET)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_request_id() -> str:
    return request_id_var.get()


def set_user_id(provider_id: str) -> None:
    user_id_var.set(provider_id)


def get_user_id() -> str:
    return user_id_var.get()


def clear_context() -> None:
    """Reset per-request values; called at the start of every request."""
    for var in (request_id_var, user_id_var):
        var.set(UNSET)
