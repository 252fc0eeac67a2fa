"""
主机上报入库服务 (Submission Ingestion Service)

编排一次已通过鉴权的上报：先独立提交心跳刷新，再在同一事务中完成主机查找或创建
与四类指标追加。任一步失败整个事务回滚，已存储序列保持不变。

Orchestrates one authorized submission: the heartbeat touch is committed on its
own first, then host find-or-create and the metric appends run in one
transaction. Any failure rolls the whole transaction back and stored series stay
untouched.
"""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.agent_auth import AgentPrincipal
from hostmon.core.database import storage_errors
from hostmon.schemas.series import MetricKind
from hostmon.schemas.telemetry import SubmissionRequest
from hostmon.services.host_registry import HostRegistry
from hostmon.services.timeseries_store import TimeSeriesStore

logger = logging.getLogger(__name__)

# 请求体字段 → 指标类型
READING_FIELDS = {
    MetricKind.CPU: "cpu_info",
    MetricKind.MEMORY: "mem_info",
    MetricKind.PROCESS: "pro_info",
    MetricKind.NETWORK: "net_info",
}


def collect_readings(body: SubmissionRequest) -> dict[MetricKind, Any]:
    """取出请求中携带的指标读数，转换为 JSON 兼容的值。"""
    readings: dict[MetricKind, Any] = {}
    for kind, field in READING_FIELDS.items():
        value = getattr(body, field)
        if value is None:
            continue
        if isinstance(value, list):
            readings[kind] = [item.model_dump(mode="json") for item in value]
        else:
            readings[kind] = value.model_dump(mode="json")
    return readings


class IngestionService:
    """上报入库服务类。"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.registry = HostRegistry(db)
        self.store = TimeSeriesStore(db)

    async def ingest(
        self,
        body: SubmissionRequest,
        principal: AgentPrincipal,
        captured_at: datetime | None = None,
    ) -> tuple[int, list[MetricKind]]:
        """
        保存一次上报 (Store one submission)

        Returns:
            tuple[int, list[MetricKind]]: 主机 ID 和本次追加的指标类型
        """
        host_info = body.host_info

        async with storage_errors("heartbeat update"):
            await self.registry.touch_heartbeat(host_info.hostname)
            await self.db.commit()

        readings = collect_readings(body)
        try:
            async with storage_errors("snapshot ingestion"):
                host_id = await self.registry.upsert_host(
                    host_info.hostname,
                    host_info.os,
                    host_info.platform,
                    host_info.kernel_arch,
                    user_name=principal.username,
                )
                await self.store.append_snapshots(host_id, readings, captured_at)
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Stored submission from %s (host_id=%s, kinds=%s)",
            host_info.hostname,
            host_id,
            ",".join(kind.value for kind in readings) or "none",
        )
        return host_id, list(readings)
