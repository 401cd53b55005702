import logging
from typing import Optional

from databases import Database
from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select

from . import crud, auth
from .admin import router as admin_router
from .analytics import router as analytics_router
from .config import Settings, configure_logging, get_settings
from .dashboard import router as dashboard_router
from .database import build_database, build_engine, upgrade_schema_if_needed
from .deps import get_db, get_settings as app_settings
from .exceptions import APIError, register_exception_handlers, store_error
from .schemas import LoginRequest, UserCreate

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    settings.validate_signing_key()
    if settings.uses_fallback_secret:
        logger.warning(
            "DASHBOARD_JWT_SECRET_KEY is not set; tokens are signed with a built-in fallback key. "
            "Do not run like this outside development."
        )

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.database = build_database(settings.database_url)
    app.state.engine = build_engine(settings.database_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(dashboard_router, tags=["dashboard"])
    app.include_router(analytics_router, tags=["analytics"])
    app.include_router(admin_router, tags=["admin"])

    @app.on_event("startup")
    async def startup():
        await app.state.database.connect()
        upgrade_schema_if_needed(app.state.engine)
        if settings.seed_on_startup:
            await crud.seed_sample_data(app.state.database)

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.database.disconnect()
        app.state.engine.dispose()

    @app.post("/api/register", status_code=status.HTTP_201_CREATED)
    async def register(
        user: UserCreate,
        db: Database = Depends(get_db),
        config: Settings = Depends(app_settings),
    ):
        try:
            user_id = await crud.create_user(db, user.email, user.password, config.password_hash_rounds)
        except APIError:
            raise
        except Exception as exc:
            raise store_error("Internal server error during registration.", exc) from exc
        return {
            "status": "success",
            "message": "User registered successfully. Please log in.",
            "userId": user_id,
        }

    @app.post("/api/login")
    async def login(
        credentials: LoginRequest,
        db: Database = Depends(get_db),
        config: Settings = Depends(app_settings),
    ):
        try:
            user = await crud.authenticate_user(db, credentials.email, credentials.password)
        except APIError:
            raise
        except Exception as exc:
            raise store_error("Internal server error during login.", exc) from exc
        token = auth.create_access_token(user["id"], user["email"], config)
        return {"status": "success", "message": "Login successful.", "token": token}

    @app.get("/api/test-db")
    async def test_db(db: Database = Depends(get_db)):
        try:
            now = await db.fetch_val(select(func.current_timestamp()))
        except Exception as exc:
            logger.exception("Database connection failed.")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"status": "error", "message": "Database connection failed.", "details": str(exc)},
            )
        return {
            "status": "success",
            "message": "Database connection successful!",
            "databaseTime": now.isoformat() if hasattr(now, "isoformat") else str(now),
        }

    return app


app = create_app()
