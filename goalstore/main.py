import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from goalstore.config import settings
from goalstore.db import async_session, init_db
from goalstore.engine import storage
from goalstore.engine.router import router as goals_router
from goalstore.engine.store import GoalStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    await init_db()
    async with async_session() as session:
        goals = await storage.load_goals(session)
    app.state.store = GoalStore(goals)
    logger.info("Goal store ready with %d goals", len(goals))
    yield


app = FastAPI(title="GoalStore", version="0.1.0", lifespan=lifespan)
app.include_router(goals_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "goals": {
            "list": "/goals",
            "detail": "/goals/{id}",
            "summary": "/goals/{id}/summary",
            "day": "/days/{date_key}",
            "selected_date": "/selected-date",
            "draft": "/drafts/add-goal",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
