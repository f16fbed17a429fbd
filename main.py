"""
Lesson content service.

Serves lesson block documents: CRUD against the configured lesson store,
downloads as JSON/HTML/text, and render trees for the lesson viewer.

Run with:
    uvicorn main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment before anything reads configuration
load_dotenv(".env.local")

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_environment, get_log_level, get_sentry_dsn
from core.database import close_engine
from web_api.routes.lessons import close_lesson_store
from web_api.routes.lessons import router as lessons_router

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

sentry_dsn = get_sentry_dsn()
if sentry_dsn:
    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=get_environment(),
        traces_sample_rate=0.1,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Lesson service starting ({get_environment()})")
    yield
    await close_lesson_store()
    await close_engine()
    logger.info("Lesson service stopped")


app = FastAPI(title="Lesson Content API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(lessons_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok"}
