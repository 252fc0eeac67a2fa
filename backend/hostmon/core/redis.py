"""
Redis 连接模块

创建和关闭 Redis 客户端。客户端在应用生命周期内创建一次并挂在 app.state 上，
路由通过 get_redis 依赖获取。
"""
import redis.asyncio as redis
from fastapi import Request


def heartbeat_key(hostname: str) -> str:
    """主机心跳键，值为最后一次上报时间，过期即视为心跳丢失。"""
    return f"heartbeat:{hostname}"


def create_redis(url: str) -> redis.Redis:
    """根据连接串创建 Redis 客户端，返回字符串而非字节。"""
    return redis.from_url(url, decode_responses=True)


async def get_redis(request: Request) -> redis.Redis:
    """FastAPI 依赖项：返回 app.state 上的 Redis 客户端。"""
    return request.app.state.redis


async def close_redis(client: redis.Redis | None) -> None:
    """关闭 Redis 连接，释放资源。"""
    if client is not None:
        await client.aclose()
