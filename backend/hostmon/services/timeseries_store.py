"""
主机时序存储服务 (Time-Series Store Service)

负责"合并还是新建"的决策：读取主机最新的时序行，解码要追加的指标序列，
在尾部追加新快照，再原地更新或插入新行。整个读-改-写过程在同一事务中完成，
并对主机行和时序行加行锁（SELECT ... FOR UPDATE），同一主机的并发追加串行执行，
不会丢失快照。

Owns the merge-or-insert decision: load the host's latest series row, decode
the series being appended to, append the new snapshot at the tail, then update
the row in place or insert a new one. The whole read-modify-write runs in one
transaction holding row locks on the host row and the series row
(SELECT ... FOR UPDATE), so concurrent appends for one host serialize and no
snapshot is lost.

行表示（每主机一行、每类指标一个 JSON 数组列）只是实现细节，对外契约是
append_snapshot / append_snapshots / load_series / series_for_hosts。
"""
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.database import storage_errors
from hostmon.core.exceptions import CorruptSeriesError, HostNotFoundError
from hostmon.models.host import Host
from hostmon.models.metric_series import MetricSeries
from hostmon.schemas.series import MetricKind, SnapshotRecord
from hostmon.services.snapshot_codec import decode_series, encode, encode_series

logger = logging.getLogger(__name__)


def latest_series_query(host_id: int, lock: bool = False):
    """最新时序行查询：updated_at 最新者优先，相同时取 id 最大者。"""
    stmt = (
        select(MetricSeries)
        .where(MetricSeries.host_id == host_id)
        .order_by(MetricSeries.updated_at.desc(), MetricSeries.id.desc())
        .limit(1)
    )
    if lock:
        stmt = stmt.with_for_update()
    return stmt


class TimeSeriesStore:
    """主机时序存储服务类。不提交事务，由调用方统一 commit / rollback。"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _lock_host(self, host_id: int) -> None:
        # 主机行锁同时串行化"首次插入"的并发场景
        result = await self.db.execute(select(Host.id).where(Host.id == host_id).with_for_update())
        if result.scalar_one_or_none() is None:
            raise HostNotFoundError(f"Host id {host_id} not found")

    async def _latest_row(self, host_id: int, lock: bool = False) -> MetricSeries | None:
        result = await self.db.execute(latest_series_query(host_id, lock=lock))
        return result.scalar_one_or_none()

    @staticmethod
    def _decode(row: MetricSeries | None, kind: MetricKind, host_id: int) -> list[SnapshotRecord]:
        if row is None:
            return []
        try:
            return decode_series(getattr(row, kind.column))
        except CorruptSeriesError as exc:
            raise CorruptSeriesError(
                f"Stored {kind.value} series for host {host_id} is not decodable",
                detail=exc.detail,
            ) from exc

    async def append_snapshot(
        self,
        host_id: int,
        kind: MetricKind,
        reading: Any,
        captured_at: datetime | None = None,
    ) -> int:
        """追加单类指标快照，返回追加后的序列长度。"""
        lengths = await self.append_snapshots(host_id, {kind: reading}, captured_at)
        return lengths[kind]

    async def append_snapshots(
        self,
        host_id: int,
        readings: Mapping[MetricKind, Any],
        captured_at: datetime | None = None,
    ) -> dict[MetricKind, int]:
        """
        一次上报的多类指标作为一个原子单元追加 (Append one submission's readings atomically)

        Args:
            host_id: 主机 ID
            readings: 指标类型 → 读数；未携带的指标序列保持原样
            captured_at: 采集时间，默认当前 UTC 时间

        Returns:
            dict[MetricKind, int]: 每类指标追加后的序列长度

        Raises:
            CorruptSeriesError: 任一已存储序列无法解码，本次所有指标都不写入
            HostNotFoundError: 主机不存在
            StorageUnavailableError: 存储不可用
        """
        if not readings:
            return {}
        captured = captured_at or datetime.now(timezone.utc)

        async with storage_errors("series append"):
            await self._lock_host(host_id)
            row = await self._latest_row(host_id, lock=True)

            # 先全部解码，确认无损坏后再修改任何列
            merged: dict[MetricKind, list[SnapshotRecord]] = {}
            for kind, reading in readings.items():
                series = self._decode(row, kind, host_id)
                series.append(encode(reading, captured))
                merged[kind] = series

            if row is None:
                row = MetricSeries(host_id=host_id, **{kind.column: [] for kind in MetricKind})
                self.db.add(row)
                logger.info("Inserting new metric series for host_id=%s", host_id)

            for kind, series in merged.items():
                setattr(row, kind.column, encode_series(series))
            row.updated_at = datetime.now(timezone.utc)
            await self.db.flush()

        return {kind: len(series) for kind, series in merged.items()}

    async def load_series(self, host_id: int, kind: MetricKind) -> list[SnapshotRecord]:
        """读取主机最新时序行中某类指标的完整序列；无数据返回空列表。"""
        async with storage_errors("series load"):
            row = await self._latest_row(host_id)
        return self._decode(row, kind, host_id)

    async def series_for_hosts(self, host_ids: Sequence[int], kind: MetricKind) -> list[SnapshotRecord]:
        """
        读取多个主机 ID 的全部时序行并按行 ID 顺序拼接。

        同一主机名在属性变化后会对应多个主机 ID，历史数据也可能有重复行。
        """
        if not host_ids:
            return []
        async with storage_errors("series load"):
            result = await self.db.execute(
                select(MetricSeries)
                .where(MetricSeries.host_id.in_(host_ids))
                .order_by(MetricSeries.id)
            )
            rows = result.scalars().all()
        records: list[SnapshotRecord] = []
        for row in rows:
            records.extend(self._decode(row, kind, row.host_id))
        return records
