"""
Gym Portal Backend
Member course access, subscriptions and account lifecycle, shop and weekly programs
"""

import logging
import traceback

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

# Import routers
from auth import auth_router
from routers.courses_router import access_router, courses_router
from routers.dashboard_router import dashboard_router
from routers.programs_router import programs_router
from routers.shop_router import products_router, shop_router
from routers.subscriptions_router import accounts_router, plans_router
from routers.users_router import users_router
from backend.utils.errors import PortalError
from backend.utils.responses import error_response, portal_error_response
from config.settings import settings, IS_PRODUCTION, LOGS_DIR
from crud import open_store
from database import init_db
from services.seed_service import seed_defaults

# Logging setup - write ALL events to /logs/app.log
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP SETUP
# ============================================================================

app = FastAPI(title="Gym Portal")


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "data": {}, "error": "internal_error", "message": "Internal Server Error"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # Course videos are embedded from YouTube, thumbnails come from external hosts
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https:; "
            "frame-src https://www.youtube.com; "
            "object-src 'none'; "
            "base-uri 'self'; "
            "form-action 'self';"
        )

        # HTTPS is only guaranteed behind the production proxy
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# ERROR ENVELOPES
# ============================================================================

@app.exception_handler(PortalError)
async def handle_portal_error(request, exc: PortalError):
    if exc.status == 409:
        logger.info(f"{request.method} {request.url.path} refused: {exc.message}")
    return portal_error_response(exc)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return error_response("validation_error", status=400, message="; ".join(messages))


# ============================================================================
# STARTUP
# ============================================================================

@app.on_event("startup")
async def check_security_settings():
    """JWT signing needs a secret; refuse to start without one in production"""
    if not settings.jwt_secret_key:
        if IS_PRODUCTION:
            raise RuntimeError("JWT_SECRET_KEY must be set in production.")
        logger.warning("JWT_SECRET_KEY is not set: login will fail until it is configured")


# Initialize database on startup
@app.on_event("startup")
async def initialize_database():
    """Create all tables, then seed the default admin and courses into an empty store."""
    try:
        await init_db()
        async with open_store() as store:
            await seed_defaults(store)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


# ============================================================================
# INCLUDE ROUTERS
# ============================================================================
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(courses_router)
app.include_router(access_router)
app.include_router(plans_router)
app.include_router(accounts_router)
app.include_router(products_router)
app.include_router(programs_router)
app.include_router(dashboard_router)
app.include_router(shop_router)


@app.get("/api/health")
async def health():
    return {"ok": True, "store": settings.store_backend}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
