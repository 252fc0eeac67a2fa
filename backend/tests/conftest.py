"""
hostmon 测试基础配置

提供 SQLite in-memory 异步数据库、mock Redis、FastAPI 测试客户端等通用 fixture。
所有测试使用隔离的 SQLite 数据库，不依赖外部 PostgreSQL/Redis。
"""
import fnmatch
import os
from typing import AsyncGenerator

# 必须在导入 hostmon 之前设置环境变量
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["REDIS_HOST"] = "localhost"
os.environ["SEED_DATA_PATH"] = ""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from hostmon.core.database import Base, create_session_factory, get_db
from hostmon.core.redis import get_redis
from hostmon.core.security import create_access_token
from hostmon.models import Host, HostToken, MetricSeries  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
STATIC_TOKEN = "0123456789abcdef"


# ── Mock Redis ────────────────────────────────────────────────────────
class FakeRedis:
    """内存级 Redis 模拟，支持基本 get/set/exists/delete 操作。"""
    def __init__(self):
        self._store: dict[str, str] = {}
        self.ttl: dict[str, int | None] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None, **kwargs) -> None:
        self._store[key] = value
        self.ttl[key] = ex

    async def delete(self, *keys: str) -> None:
        for k in keys:
            self._store.pop(k, None)

    async def exists(self, key: str) -> int:
        return 1 if key in self._store else 0

    async def keys(self, pattern: str = "*") -> list[str]:
        return [k for k in self._store if fnmatch.fnmatch(k, pattern)]

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


# ── Fixtures ──────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    """每个测试一个独立的内存数据库，测试前建表，测试后释放。"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """提供一个干净的数据库会话。"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    """提供配置好依赖覆盖的异步 HTTP 测试客户端。"""
    from hostmon.main import app

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def host_token(db_session: AsyncSession) -> HostToken:
    """web01 的静态令牌绑定。"""
    binding = HostToken(hostname="web01", token=STATIC_TOKEN, status="offline")
    db_session.add(binding)
    await db_session.commit()
    await db_session.refresh(binding)
    return binding


@pytest.fixture
def session_token() -> str:
    return create_access_token("alice")


@pytest.fixture
def auth_headers(session_token: str) -> dict:
    return {"Authorization": f"Bearer {session_token}"}


@pytest_asyncio.fixture
async def sample_host(db_session: AsyncSession) -> Host:
    host = Host(hostname="web01", os="linux", platform="ubuntu", kernel_arch="x86_64", user_name="alice")
    db_session.add(host)
    await db_session.commit()
    await db_session.refresh(host)
    return host


def build_submission(token: str = STATIC_TOKEN, hostname: str = "web01", **metrics) -> dict:
    """构造上报请求体，未指定指标时携带全部四类。"""
    body = {
        "host_info": {
            "hostname": hostname,
            "os": "linux",
            "platform": "ubuntu",
            "kernel_arch": "x86_64",
            "token": token,
        },
    }
    if not metrics:
        metrics = {
            "cpu_info": [{"model_name": "Intel(R) Core(TM) i7-9750H", "cores_num": 6, "percent": 25.5}],
            "mem_info": {"total": "16G", "available": "8G", "used": "8G", "free": "7G", "user_percent": 50.0},
            "pro_info": [{"pid": 1, "cpu_percent": 0.1, "mem_percent": 0.2, "cmdline": "/sbin/init"}],
            "net_info": {"name": "eth0", "bytes_recv": 1024, "bytes_sent": 2048},
        }
    body.update(metrics)
    return body


@pytest.fixture
def make_submission():
    return build_submission
