"""
FastAPI app entrypoint.

Public booking API, self-service reservation links (/r/{token}) and the password-protected admin panel.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from app.api.routes import admin, public, reservations
from app.config import settings
from app.core.constants import HEALTHZ_PATH
from app.core.errors import register_exception_handlers
from app.db.session import Database

logging.basicConfig(
    level=getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the app. The Database is opened in lifespan and closed at shutdown;
    pass one in (tests) to use another URL than DATABASE_URL.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.database_url)
        db.open()
        if settings.auto_create_schema:
            db.create_schema()
        app.state.database = db
        logger.info("Backend ready (%s)", settings.base_url)
        yield
        db.close()

    app = FastAPI(title="Presence Booking", version="0.1.0", lifespan=lifespan)

    # CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for a separately hosted frontend
    cors_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_extra = settings.cors_origins
    if cors_extra:
        cors_origins.extend(o.strip() for o in cors_extra.split(",") if o.strip())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(public.router, tags=["booking"])
    app.include_router(reservations.router, prefix="/r", tags=["reservations"])
    app.include_router(admin.auth_router, prefix="/admin", tags=["admin"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get(HEALTHZ_PATH, include_in_schema=False)
    def healthz() -> PlainTextResponse:
        """Liveness only: never touches the database."""
        return PlainTextResponse("ok")

    return app


app = create_app()
