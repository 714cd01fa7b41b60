# mentorhub/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mentorhub import __version__
from mentorhub.api import dashboard, mentors, notifications, realtime, requests, sessions
from mentorhub.config import settings
from mentorhub.database import Base, engine
from mentorhub import models  # noqa: F401 - register tables before create_all
from mentorhub.services.event_channel import get_event_channel
from mentorhub.services.scheduler import EventScheduler

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    # Create database tables (migrations own production schemas)
    Base.metadata.create_all(bind=engine)

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = EventScheduler(get_event_channel())
        scheduler.start()
    app.state.scheduler = scheduler
    logger.info("MentorHub API started (env=%s)", settings.APP_ENV)
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


# Initialize FastAPI app
app = FastAPI(title="MentorHub API", version=__version__, lifespan=lifespan)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(requests.router)       # /requests/*
app.include_router(sessions.router)       # /sessions/*
app.include_router(mentors.router)        # /mentors
app.include_router(dashboard.router)      # /dashboard/*
app.include_router(notifications.router)  # /notifications/*
app.include_router(realtime.router)       # /ws/events


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "MentorHub API is running",
        "version": __version__,
    }
