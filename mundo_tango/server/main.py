"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers the exception handlers and includes all API
routers. It serves as the root of the Mundo Tango web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mundo_tango.core.database import init_db
from mundo_tango.core.logging_config import get_logger, setup_logging
from mundo_tango.core.monitoring import initialize_logfire

from .api.v1 import (
    analytics,
    crowdfunding,
    events,
    feed,
    gamification,
    groups,
    health,
    marketplace,
    messages,
    moderation,
    posts,
    recommendations,
    users,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestTracingMiddleware

# Initialize logging
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the database tables on startup. A failure is logged and the
    server keeps running so the health endpoints can report it.
    """
    try:
        logger.info("Starting up Mundo Tango Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    logger.info("Shutting down Mundo Tango Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Mundo Tango API

    Backend of the Mundo Tango social network for the tango community: profiles
    and the social graph, posts and the personalized feed, groups, events,
    the marketplace, crowdfunding, messaging, gamification, recommendations,
    moderation and engagement analytics.

    The acting member is identified by the `X-User-Id` header.
    """,
    version=constant.API_VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(RequestTracingMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, prefix=constant.API_V1_STR, tags=["health"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/users")
app.include_router(posts.router, prefix=f"{constant.API_V1_STR}/posts")
app.include_router(feed.router, prefix=f"{constant.API_V1_STR}/feed")
app.include_router(groups.router, prefix=f"{constant.API_V1_STR}/groups")
app.include_router(events.router, prefix=f"{constant.API_V1_STR}/events")
app.include_router(marketplace.router, prefix=f"{constant.API_V1_STR}/marketplace")
app.include_router(crowdfunding.router, prefix=f"{constant.API_V1_STR}/crowdfunding")
app.include_router(messages.router, prefix=f"{constant.API_V1_STR}/messages")
app.include_router(gamification.router, prefix=f"{constant.API_V1_STR}/gamification")
app.include_router(recommendations.router, prefix=f"{constant.API_V1_STR}/recommendations")
app.include_router(moderation.router, prefix=f"{constant.API_V1_STR}/moderation")
app.include_router(analytics.router, prefix=f"{constant.API_V1_STR}/analytics")

initialize_logfire(app)
