"""
数据库连接模块 (Database Connection Module)

基于 SQLAlchemy 2.0 异步模式创建数据库引擎和会话工厂。引擎不再是进程级全局变量：
应用生命周期内创建一次并挂在 app.state 上，请求通过 get_db 依赖获取会话，
后台任务则直接接收会话工厂作为参数。

Creates the database engine and session factory on SQLAlchemy 2.0 async mode.
The engine is not a process-wide global: it is created once in the application
lifespan and kept on app.state, requests obtain sessions through the get_db
dependency, and background tasks receive the session factory as an argument.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from hostmon.core.exceptions import StorageUnavailableError


class Base(DeclarativeBase):
    """
    ORM 模型基类 (ORM Model Base Class)

    SQLAlchemy 2.0 的声明式基类，所有数据模型都继承此类。
    """
    pass


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    """创建异步数据库引擎 (Create the async database engine)"""
    return create_async_engine(database_url, echo=False, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    创建异步会话工厂 (Create Async Session Factory)

    会话不在提交后过期，保持对象状态以便后续访问。
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI 依赖项：获取数据库会话 (FastAPI Dependency: Get Database Session)

    从 app.state 上的会话工厂打开会话，请求结束后关闭，防止连接泄漏。

    Yields:
        AsyncSession: 异步数据库会话实例 (Async database session instance)
    """
    async with request.app.state.session_factory() as session:
        yield session


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncIterator[None]:
    """把驱动层的连接/操作错误转换为 StorageUnavailableError。"""
    try:
        yield
    except (OperationalError, InterfaceError, RedisConnectionError) as exc:
        raise StorageUnavailableError(f"Storage unavailable during {operation}", detail=str(exc)) from exc
