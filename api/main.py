import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.db.session import engine, init_schema
from app.api.routes import APP_VERSION, router as api_router


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    from app.db.session import SessionLocal
    from app.db.seed import seed_admin
    _configure_logging()
    init_schema()
    db = SessionLocal()
    try:
        seed_admin(db)
    finally:
        db.close()
    yield
    engine.dispose()


app = FastAPI(title="StoreAdmin API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
def index():
    return {"app": settings.app_name, "version": APP_VERSION}


@app.get("/health")
def health():
    return {"status": "ok", "app": "storeadmin", "version": APP_VERSION}
