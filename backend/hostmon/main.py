"""
hostmon 后端应用入口模块 (hostmon Backend Application Entry Module)

负责 FastAPI 应用的完整生命周期管理：启动时创建数据库引擎、会话工厂和 Redis 客户端并挂到
app.state 上，自动建表、按需加载种子数据、启动离线检测任务；关闭时取消任务并释放连接。

Main entry point for the hostmon backend, managing the FastAPI lifecycle: at startup it
creates the database engine, session factory and Redis client on app.state, creates
tables, optionally loads seed data and starts the offline detector; at shutdown it
cancels the task and releases connections.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis.asyncio as redis
from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.config import settings
from hostmon.core.database import Base, create_engine, create_session_factory, get_db
from hostmon.core.exceptions import register_exception_handlers
from hostmon.core.redis import close_redis, create_redis, get_redis
# 导入所有模型以确保 SQLAlchemy 表注册 (Import all models to ensure SQLAlchemy table registration)
from hostmon.models import Host, HostToken, MetricSeries  # noqa: F401
from hostmon.routers import host_tokens
from hostmon.routers import monitor

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理器 (Application Lifecycle Manager)
    """
    from hostmon.services.seed_loader import load_seed_data, read_seed_file
    from hostmon.tasks.offline_detector import offline_detector_loop

    # 启动阶段：创建连接 (Startup Phase: create connections)
    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    redis_client = create_redis(settings.redis_url)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.redis = redis_client

    # 自动创建数据库表结构 (Automatically create database table structure)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 加载种子数据 (Load seed data)
    if settings.seed_data_path:
        async with session_factory() as session:
            await load_seed_data(session, read_seed_file(settings.seed_data_path))

    # 主机离线检测任务 (Host offline detection task)
    task = asyncio.create_task(
        offline_detector_loop(
            session_factory,
            redis_client,
            settings.heartbeat_ttl_seconds,
            settings.offline_check_interval,
        )
    )

    yield

    # 关闭阶段：取消任务并释放连接 (Shutdown Phase: cancel task and release connections)
    task.cancel()
    await close_redis(redis_client)
    await engine.dispose()


# 创建 FastAPI 应用实例 (Create FastAPI application instance)
app = FastAPI(
    title="hostmon",
    description="Host telemetry ingestion and time-range queries",
    version="0.1.0",
    lifespan=lifespan,
)

# 注册全局异常处理器 (Register global exception handlers)
register_exception_handlers(app)

# 注册所有 API 路由模块 (Register all API router modules)
app.include_router(monitor.router)  # 指标上报与查询 (Metric ingestion and queries)
app.include_router(host_tokens.router)  # 主机令牌管理 (Host token management)


@app.get("/health")
@app.get("/api/v1/health")
async def health(
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
):
    """
    健康检查接口 (Health Check Endpoint)

    验证数据库和 Redis 的连通性，任一失败时整体状态为 degraded。
    """
    checks = {"api": "ok"}

    # 数据库连通性检查 (Database connectivity check)
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        logger.warning("Health check: database unreachable", exc_info=True)
        checks["database"] = "error"

    # Redis 连通性检查 (Redis connectivity check)
    try:
        await redis_client.ping()
        checks["redis"] = "ok"
    except Exception:
        logger.warning("Health check: redis unreachable", exc_info=True)
        checks["redis"] = "error"

    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"

    return {
        "status": status,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
