import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import Base, SessionLocal, engine
from .errors import StorageError
from .models import Division
from .routes import divisions, frames, maintenance, matches, notifications, players, standings, stats, teams

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pool League API",
    version="1.0.0",
    description=(
        "League administration APIs: fixtures, match results, frame scoring, "
        "derived standings and winner reconciliation."
    ),
)

cors_origins = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000",
)
allow_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


def should_auto_seed() -> bool:
    value = os.getenv("AUTO_SEED_ON_EMPTY", "true").strip().lower()
    return value in {"1", "true", "yes", "on"}


def seed_if_empty() -> None:
    if not should_auto_seed():
        return

    with SessionLocal() as db:
        if db.query(Division.id).first() is not None:
            return

    from seed import seed

    logger.info("Empty database, seeding sample league")
    seed(demo_progress=False)


seed_if_empty()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(divisions.router, prefix="/divisions")
app.include_router(teams.router, prefix="/teams")
app.include_router(players.router, prefix="/players")
app.include_router(matches.router, prefix="/matches")
app.include_router(frames.router, prefix="/matches")
app.include_router(standings.router, prefix="/standings")
app.include_router(stats.router, prefix="/stats")
app.include_router(notifications.router, prefix="/notifications")
app.include_router(maintenance.router, prefix="/maintenance")
