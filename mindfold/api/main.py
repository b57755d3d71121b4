"""
FastAPI app assembly: logging, middleware and router wiring.
"""
import logging
import os

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from mindfold.api.accounts import router as accounts_router  # noqa: E402
from mindfold.api.admin import documents_router, router as admin_router  # noqa: E402
from mindfold.api.billing import router as billing_router  # noqa: E402
from mindfold.api.chat import router as chat_router  # noqa: E402
from mindfold.api.journal import router as journal_router  # noqa: E402
from mindfold.api.landing import router as landing_router  # noqa: E402
from mindfold.api.reports import router as reports_router  # noqa: E402
from mindfold.api.reviews import router as reviews_router  # noqa: E402
from mindfold.api.sessions import router as sessions_router  # noqa: E402
from mindfold.api.settings import router as settings_router  # noqa: E402
from mindfold.api.support import router as support_router  # noqa: E402
from mindfold.api.therapists import router as therapists_router  # noqa: E402
from mindfold.api.usage import router as usage_router  # noqa: E402
from mindfold.api.webhooks import WEBHOOK_PATH, router as webhooks_router  # noqa: E402

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Mindfold Service",
    description="API for AI-assisted journaling, therapist care and subscription billing.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
]
origins.extend(
    origin.strip() for origin in os.getenv("CORS_EXTRA_ORIGINS", "").split(",") if origin.strip()
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

IDENTITY_HEADERS = ("x-auth-request-user", "x-auth-request-email", "x-forwarded-user", "x-forwarded-email")


# Middleware: reject writes without a proxy identity
@app.middleware("http")
async def require_identity_for_writes(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        is_dev_mode = os.getenv("DEV_MODE", "false").lower() == "true"
        # The payment webhook authenticates by signature
        if not is_dev_mode and request.url.path != WEBHOOK_PATH:
            if not any(request.headers.get(name) for name in IDENTITY_HEADERS):
                return JSONResponse(
                    {"detail": "Authentication required"},
                    status_code=status.HTTP_401_UNAUTHORIZED,
                )
    return await call_next(request)


app.include_router(support_router)
app.include_router(accounts_router)
app.include_router(journal_router)
app.include_router(chat_router)
app.include_router(usage_router)
app.include_router(billing_router)
app.include_router(webhooks_router)
app.include_router(therapists_router)
app.include_router(sessions_router)
app.include_router(reviews_router)
app.include_router(settings_router)
app.include_router(landing_router)
app.include_router(reports_router)
app.include_router(admin_router)
app.include_router(documents_router)
