from slowapi import Limiter
from slowapi.util import get_remote_address

from loan_manager.core.settings import settings

# Per client address, shared across workers through Redis
limiter = Limiter(
    key_func=get_remote_address,
    key_prefix="loan_manager",
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    storage_uri=settings.redis_url,
    strategy="moving-window",
    in_memory_fallback_enabled=True,
)
