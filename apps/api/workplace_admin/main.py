"""FastAPI application entry point."""
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.middleware.sessions import SessionMiddleware

from workplace_admin.core.config import settings
from workplace_admin.core.deps import LoginRequired
from workplace_admin.core.errors import ConsoleError
from workplace_admin.core.rate_limit import limiter
from workplace_admin.core.structured_logging import build_log_context, configure_logging
from workplace_admin.db.session import engine
from workplace_admin.routers import admin, auth, callbacks, install, webhooks
from workplace_admin.templating import render_error

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Never ship tokens or usernames
    )
    logger.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Workplace Admin Console",
    description="Admin console and install flows for a Workplace integration",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE,
    same_site="lax",
    https_only=settings.cookie_secure,
)


# ============================================================================
# Error handling
# ============================================================================

@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError):
    """Validation-class errors render the error page with their own status."""
    return render_error(request, exc.message, exc.status_code)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(url="/login", status_code=302)


@app.exception_handler(httpx.HTTPError)
async def graph_error_handler(request: Request, exc: httpx.HTTPError):
    """Upstream Graph API failures surface as a 502 without retry."""
    logger.exception(
        "Graph API call failed",
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    return render_error(request, "The Workplace API request failed.", 502)


# ============================================================================
# Routers
# ============================================================================

app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(install.router)
app.include_router(callbacks.router)
app.include_router(webhooks.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """Verifies database connectivity and returns environment info."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
