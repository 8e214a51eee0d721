"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from peertutor.config import settings
from peertutor.db.database import Base, engine
from peertutor.db.redis import close_redis, get_redis_client
from peertutor.errors import PeerTutorError
from peertutor.scheduler import create_scheduler
from peertutor.services.notification_feed import NotificationFeed
from peertutor.services.notification_service import NotificationService
from peertutor.services.object_store import HttpObjectStore
from peertutor.services.push_service import ExpoPushChannel

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (dev only; use migrations in production)
    import peertutor.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    push = ExpoPushChannel()
    notifier = NotificationService(push=push, feed=NotificationFeed(get_redis_client()))
    app.state.notification_service = notifier
    store = HttpObjectStore()
    app.state.object_store = store

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = create_scheduler(notifier)
        scheduler.start()
    logger.info("PeerTutor API started (%s)", settings.APP_ENV)
    yield
    # Shutdown: stop jobs, close connections
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    await push.close()
    await store.close()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title="PeerTutor API",
    description="Backend API for PeerTutor - peer matching, connections, notifications and file sharing",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # TODO: restrict to the mobile app origins before launch
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PeerTutorError)
async def peertutor_error_handler(request: Request, exc: PeerTutorError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# --- Routes ---
from peertutor.api.routes import (  # noqa: E402
    admin,
    chats,
    communities,
    connections,
    events,
    matches,
    notifications,
    topics,
    users,
)
from peertutor.api.websocket import notifications_ws  # noqa: E402

app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(topics.router, prefix="/api/topics", tags=["topics"])
app.include_router(matches.router, prefix="/api/matches", tags=["matches"])
app.include_router(connections.router, prefix="/api/connections", tags=["connections"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(communities.router, prefix="/api/communities", tags=["communities"])
app.include_router(events.router, prefix="/api/events", tags=["events"])
app.include_router(chats.router, prefix="/api/chats", tags=["chats"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(notifications_ws.router, tags=["websocket"])


@app.get("/health")
async def health_check():
    return {"status": "ok"}
