from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from loan_manager import __version__
from loan_manager.api.routers import api_router
from loan_manager.core.errors import register_exception_handlers
from loan_manager.core.limiter import limiter
from loan_manager.core.logging import configure_logging
from loan_manager.core.response_envelope import register_response_envelope
from loan_manager.core.settings import settings
from loan_manager.events import register_event_handlers
from loan_manager.middlewares.request_context import RequestContextMiddleware
from loan_manager.middlewares.security_headers import SecurityHeadersMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Loan Manager Backend", version=__version__)
    register_exception_handlers(app)
    register_response_envelope(app)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=settings.enable_hsts,
        content_security_policy=settings.content_security_policy,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length", "X-Request-ID"],
    )
    app.include_router(api_router, prefix="/api")
    register_event_handlers(app)
    return app


app = create_app()
