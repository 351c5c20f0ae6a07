from collections.abc import AsyncGenerator, Generator
import os

# Settings are read on first import of the application modules
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.core.redis.dependencies import get_redis_client  # noqa: E402
from src.main.config import Config, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from src.session.engine import SessionEngine  # noqa: E402
from src.session.store.memory_store import InMemorySessionStore  # noqa: E402
from src.session.store.redis_store import RedisSessionStore  # noqa: E402
from tests.fakes.redis import InMemoryRedis  # noqa: E402
from tests.helpers.overrides import DependencyOverrides  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def engine(settings: Config, memory_store: InMemorySessionStore) -> SessionEngine:
    return SessionEngine(settings, memory_store)


@pytest.fixture
def redis_engine(settings: Config, fake_redis: InMemoryRedis) -> SessionEngine:
    store = RedisSessionStore(
        fake_redis,  # type: ignore[arg-type]
        key_prefix=settings.session.TOKEN_KEY_PREFIX,
    )
    return SessionEngine(settings, store)


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    dependency_overrides: DependencyOverrides,
    fake_redis: InMemoryRedis,
    settings: Config,
) -> FastAPI:
    dependency_overrides.set_value(get_redis_client, fake_redis)
    dependency_overrides.set_value(get_settings, settings)
    return app


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_with_fakes)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
