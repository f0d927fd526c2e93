import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.errors import register_exception_handlers
from app.modules.auth import routes as auth_routes
from app.modules.groups import routes as groups_routes
from app.modules.rounds import routes as rounds_routes
from app.modules.preferences import routes as preferences_routes
from app.modules.restaurants import routes as restaurants_routes
from app.modules.geocoding import routes as geocoding_routes
from app.modules.admin import routes as admin_routes
from app.modules.avatars import routes as avatars_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api")
app.include_router(groups_routes.router, prefix="/api")
app.include_router(rounds_routes.router, prefix="/api")
app.include_router(preferences_routes.router, prefix="/api")
app.include_router(restaurants_routes.router, prefix="/api")
app.include_router(geocoding_routes.router, prefix="/api")
app.include_router(admin_routes.router, prefix="/api")
app.include_router(avatars_routes.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    missing = settings.missing("supabase_url", "supabase_key")
    if missing:
        logger.warning(f"Missing configuration: {', '.join(missing)}")
    logger.info(f"Application startup ({settings.environment})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports missing Supabase configuration."""
    missing = settings.missing("supabase_url", "supabase_key")
    if missing:
        return {"status": "not_ready", "missing": missing}
    return {"status": "ready"}
