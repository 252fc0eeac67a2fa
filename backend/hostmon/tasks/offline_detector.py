"""
主机离线检测任务模块。

定期扫描所有在线的令牌绑定，当 Redis 中的心跳键已过期且数据库中的
last_heartbeat 也超过超时时间时，将主机标记为离线。
"""
import asyncio
import logging
from datetime import datetime, timezone, timedelta

import redis.asyncio as redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hostmon.core.redis import heartbeat_key
from hostmon.models.host_token import HostToken

logger = logging.getLogger(__name__)


async def check_offline_hosts(
    session_factory: async_sessionmaker[AsyncSession],
    redis_client: redis.Redis,
    timeout_seconds: int,
) -> list[str]:
    """扫描在线主机的心跳，返回本次被标记为离线的主机名。"""
    marked: list[str] = []
    async with session_factory() as db:
        result = await db.execute(select(HostToken).where(HostToken.status == "online"))
        bindings = result.scalars().all()

        now = datetime.now(timezone.utc)
        for binding in bindings:
            if await redis_client.exists(heartbeat_key(binding.hostname)):
                continue
            # Redis 中无心跳记录，回退到数据库中的 last_heartbeat 字段判断
            last = binding.last_heartbeat
            if last is not None and last.tzinfo is None:
                last = last.replace(tzinfo=timezone.utc)
            if last is None or (now - last) > timedelta(seconds=timeout_seconds):
                binding.status = "offline"
                marked.append(binding.hostname)
                logger.warning(f"Host {binding.hostname} marked offline (no heartbeat)")

        await db.commit()
    return marked


async def offline_detector_loop(
    session_factory: async_sessionmaker[AsyncSession],
    redis_client: redis.Redis,
    timeout_seconds: int,
    interval: int,
):
    """离线检测后台循环，定期检查主机心跳状态。"""
    logger.info("Offline detector started")
    while True:
        try:
            await check_offline_hosts(session_factory, redis_client, timeout_seconds)
        except Exception:
            logger.exception("Error in offline detector")
        await asyncio.sleep(interval)
