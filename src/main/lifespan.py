from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from src.core.redis.lifecycle import on_redis_shutdown, on_redis_startup
from src.main.config import get_settings
from src.main.sentry import init_sentry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_sentry()
    await on_redis_startup(app, get_settings().redis)

    yield

    await on_redis_shutdown(app)
