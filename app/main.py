import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import config
from .database import Base, engine
from .exceptions import HabitTrackerError, PersistenceUnavailable
from .routers import daily_progress, habits, health, history, stats, user
from .schemas import ErrorResponse
from .scheduler import refresh_stats_summaries
from .utils.daily_snapshots import save_daily_snapshots

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully!")

    if config.ENABLE_SCHEDULER:
        scheduler.add_job(save_daily_snapshots, 'cron', hour=0, minute=5)  # Daily just after midnight
        scheduler.add_job(refresh_stats_summaries, 'cron', hour=0, minute=30)
        scheduler.start()
        logger.info("Scheduler started...")

    yield

    logger.info("Application shutdown...")
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler shut down.")


app = FastAPI(
    title="Habit Tracker API",
    description="Habits, daily progress, streaks and completion statistics",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HabitTrackerError)
async def habit_tracker_error_handler(request: Request, exc: HabitTrackerError):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.kind, detail=exc.detail).model_dump(),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=PersistenceUnavailable.status_code,
        content=ErrorResponse(error=PersistenceUnavailable.kind, detail="Database is unavailable").model_dump(),
    )


app.include_router(habits.router)
app.include_router(daily_progress.router)
app.include_router(stats.router)
app.include_router(history.router)
app.include_router(user.router)
app.include_router(health.router)


@app.get("/")
def read_root():
    return {"message": "Habit tracker backend running"}
