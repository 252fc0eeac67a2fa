"""
主机注册服务 (Host Registry Service)

按 (hostname, os, platform, kernel_arch) 四元组查找或创建主机：命中时只刷新
updated_at 并返回原 ID，不覆盖其它属性；未命中则插入新行。这不是"后写覆盖"式
upsert，主机重装系统后会得到新的 ID，历史数据不会自动关联。

另外负责心跳：每次通过鉴权的上报都把令牌绑定置为 online 并刷新 last_heartbeat，
绑定不存在时静默跳过。

Find-or-create keyed by the full (hostname, os, platform, kernel_arch) tuple: a
match only refreshes updated_at and returns the existing id without overwriting
other attributes; no match inserts a new row. This is not last-write-wins, so a
reimaged host gets a new id and its history is not carried over.

Also owns the heartbeat touch: every accepted submission flips the token binding
to online and refreshes last_heartbeat; an absent binding is a silent no-op.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.exceptions import ConflictError, HostNotFoundError
from hostmon.models.host import Host
from hostmon.models.host_token import HostToken

logger = logging.getLogger(__name__)


class HostRegistry:
    """主机注册服务类。不提交事务，由调用方统一 commit / rollback。"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_host(
        self,
        hostname: str,
        os: str,
        platform: str,
        kernel_arch: str,
        user_name: str | None = None,
    ) -> int:
        """
        查找或创建主机，返回主机 ID (Find or create a host, return its id)

        Raises:
            ConflictError: 并发请求同时创建了同一四元组，调用方可重试
        """
        result = await self.db.execute(
            select(Host)
            .where(
                Host.hostname == hostname,
                Host.os == os,
                Host.platform == platform,
                Host.kernel_arch == kernel_arch,
            )
            .order_by(Host.id)
            .limit(1)
        )
        host = result.scalar_one_or_none()

        if host:
            host.updated_at = datetime.now(timezone.utc)
            await self.db.flush()
            logger.info("Updated existing host %s with id=%s", hostname, host.id)
            return host.id

        host = Host(
            hostname=hostname,
            os=os,
            platform=platform,
            kernel_arch=kernel_arch,
            user_name=user_name,
        )
        self.db.add(host)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"Host {hostname} was registered concurrently, retry the submission",
                detail=str(exc.orig),
            ) from exc
        logger.info("Inserted new host %s with id=%s", hostname, host.id)
        return host.id

    async def touch_heartbeat(self, hostname: str) -> bool:
        """刷新心跳并置为在线；没有对应令牌绑定时返回 False，不报错。"""
        result = await self.db.execute(
            update(HostToken)
            .where(HostToken.hostname == hostname)
            .values(status="online", last_heartbeat=datetime.now(timezone.utc))
        )
        if result.rowcount == 0:
            logger.debug("No token binding for %s, heartbeat skipped", hostname)
            return False
        return True

    async def get_host(self, hostname: str) -> Host:
        """返回该主机名最近更新的主机行。"""
        result = await self.db.execute(
            select(Host)
            .where(Host.hostname == hostname)
            .order_by(Host.updated_at.desc(), Host.id.desc())
            .limit(1)
        )
        host = result.scalar_one_or_none()
        if host is None:
            raise HostNotFoundError(f"Host {hostname} not found")
        return host

    async def host_ids(self, hostname: str) -> list[int]:
        result = await self.db.execute(select(Host.id).where(Host.hostname == hostname).order_by(Host.id))
        return list(result.scalars().all())

    async def get_binding(self, hostname: str) -> HostToken | None:
        result = await self.db.execute(select(HostToken).where(HostToken.hostname == hostname))
        return result.scalar_one_or_none()
