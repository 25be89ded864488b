import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.engine.url import make_url

from session_auth.auth.login_guard import LoginGuard
from session_auth.auth.router import router as auth_router
from session_auth.auth.security import configure_password_hashing
from session_auth.auth.seed import seed_default_data
from session_auth.auth.service import TokenService
from session_auth.auth.store import AuthStores
from session_auth.core.config import Settings, TokenConfig, settings as default_settings
from session_auth.core.exception_handlers import register_exception_handlers
from session_auth.db.init_db import init_db
from session_auth.db.session import build_engine, build_session_factory
from session_auth.system.security_headers import SecurityHeadersMiddleware
from session_auth.tenants.router import router as tenants_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    app = FastAPI(
        title="Tenant Session Auth",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.ENV == "production")
    register_exception_handlers(app)

    configure_password_hashing(settings.BCRYPT_ROUNDS)

    engine = None
    if settings.STORE_BACKEND == "sql":
        engine = build_engine(settings)
        init_db(engine)
        stores = AuthStores.sql(build_session_factory(engine))
    else:
        stores = AuthStores.in_memory()

    token_config = TokenConfig.from_settings(settings)
    service = TokenService(token_config, stores)
    if settings.SEED_DEFAULT_DATA:
        seed_default_data(service, settings)

    app.state.settings = settings
    app.state.engine = engine
    app.state.token_service = service
    app.state.login_guard = LoginGuard(
        max_failures=settings.LOGIN_MAX_FAILURES,
        window_seconds=settings.LOGIN_WINDOW_SECONDS,
        lock_seconds=settings.LOGIN_LOCK_SECONDS,
    )

    logger.info(
        "Config sanity: env=%s store=%s db_host=%s access_exp_s=%s refresh_exp_days=%s cookie_secure=%s",
        settings.ENV,
        settings.STORE_BACKEND,
        (make_url(settings.DATABASE_URL).host or "local") if engine is not None else "-",
        settings.JWT_ACCESS_EXP_SECONDS,
        settings.JWT_REFRESH_EXP_DAYS,
        settings.cookie_secure,
    )

    # --- Routers ---
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(tenants_router, prefix="/api/tenants", tags=["tenants"])

    # --- System ---
    @app.get("/health", tags=["system"])
    def health():
        return {"status": "ok"}

    @app.get("/ready", tags=["system"])
    def readiness(request: Request):
        db_engine = request.app.state.engine
        if db_engine is None:
            return {"status": "ready"}
        try:
            with db_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            raise HTTPException(status_code=503, detail="Database not ready")
        return {"status": "ready"}

    return app


app = create_app()
