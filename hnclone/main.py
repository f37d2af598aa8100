import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hnclone.cache import cache
from hnclone.config import settings
from hnclone.graphql import create_graphql_router, validate_schema
from hnclone.middleware import TimingMiddleware
from hnclone.routers import auth, metrics, pages

VERSION = "1.0.0"


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    validate_schema()
    await cache.connect()
    yield
    await cache.disconnect()


app = FastAPI(
    title="Hacker News clone",
    description="Server-rendered Hacker News pages backed by a GraphQL API",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(create_graphql_router())
app.include_router(auth.router)
app.include_router(auth.api_router)
app.include_router(metrics.router)
app.include_router(pages.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
