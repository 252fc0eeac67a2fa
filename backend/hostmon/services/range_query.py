"""
时间范围查询服务 (Range Query Engine)

按主机名、查询类型和半开区间 [from, to) 读取时序数据：解码已存储的全部数组，
保留采集时间满足 from <= t < to 的记录，顺序与存储（追加）顺序一致，不重新排序。

Reads series by hostname, query kind and half-open interval [from, to): decodes
every stored array and keeps the records whose capture time satisfies
from <= t < to, in stored (append) order without re-sorting.

查询类型 (Query kinds): host / cpu / memory / process / network / all，
net 作为 network 的别名。
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.database import storage_errors
from hostmon.core.exceptions import BadRequestError, InvalidRangeError
from hostmon.schemas.host import HostResponse
from hostmon.schemas.series import MetricKind, RangeBundle, SnapshotRecord
from hostmon.services.host_registry import HostRegistry
from hostmon.services.timeseries_store import TimeSeriesStore

_datetime_adapter = TypeAdapter(datetime)


class QueryKind(str, Enum):
    HOST = "host"
    CPU = "cpu"
    MEMORY = "memory"
    PROCESS = "process"
    NETWORK = "network"
    ALL = "all"


_ALIASES = {"net": QueryKind.NETWORK}


def parse_query_kind(value: str | QueryKind) -> QueryKind:
    if isinstance(value, QueryKind):
        return value
    normalized = (value or "").strip().lower()
    if normalized in _ALIASES:
        return _ALIASES[normalized]
    try:
        return QueryKind(normalized)
    except ValueError:
        raise BadRequestError(f"Unsupported query type: {value}") from None


def parse_timestamp(value: str | datetime | None, name: str) -> datetime:
    """解析 RFC 3339 时间，无时区按 UTC 处理；缺失或格式错误抛出 InvalidRangeError。"""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRangeError(f"Missing '{name}' timestamp")
    try:
        parsed = _datetime_adapter.validate_python(value.strip() if isinstance(value, str) else value)
    except ValidationError as exc:
        raise InvalidRangeError(f"Malformed '{name}' timestamp: {value}", detail=str(exc)) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_window(start: str | datetime | None, end: str | datetime | None) -> tuple[datetime, datetime]:
    start_at = parse_timestamp(start, "from")
    end_at = parse_timestamp(end, "to")
    if start_at > end_at:
        raise InvalidRangeError(f"'from' ({start_at.isoformat()}) is after 'to' ({end_at.isoformat()})")
    return start_at, end_at


def filter_range(records: Iterable[SnapshotRecord], start: datetime, end: datetime) -> list[SnapshotRecord]:
    """半开区间过滤：包含 start，不包含 end。"""
    return [record for record in records if start <= record.time < end]


class RangeQueryEngine:
    """时间范围查询服务类，只读。"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.registry = HostRegistry(db)
        self.store = TimeSeriesStore(db)

    async def host_attributes(self, hostname: str) -> HostResponse:
        """主机属性及令牌绑定上的在线状态，不做时间过滤。"""
        host = await self.registry.get_host(hostname)
        binding = await self.registry.get_binding(hostname)
        data = HostResponse.model_validate(host)
        if binding is not None:
            data = data.model_copy(update={"status": binding.status, "last_heartbeat": binding.last_heartbeat})
        return data

    async def query_range(
        self,
        hostname: str,
        kind: str | QueryKind,
        start: str | datetime | None = None,
        end: str | datetime | None = None,
    ) -> RangeBundle:
        """
        按时间范围查询 (Query by time range)

        Args:
            hostname: 主机名
            kind: 查询类型
            start: 区间下界（包含），host 查询可省略
            end: 区间上界（不包含），host 查询可省略

        Returns:
            RangeBundle: 只填充本次查询涉及的字段

        Raises:
            BadRequestError: 不支持的查询类型
            InvalidRangeError: 时间缺失、格式错误或 from 晚于 to
            HostNotFoundError: 主机不存在
            CorruptSeriesError: 已存储序列无法解码
        """
        query_kind = parse_query_kind(kind)
        window = None
        if query_kind is not QueryKind.HOST:
            window = parse_window(start, end)
        else:
            # host 查询不按时间过滤，但提供了的边界仍须合法
            for value, name in ((start, "from"), (end, "to")):
                if value is not None:
                    parse_timestamp(value, name)

        async with storage_errors("range query"):
            host = await self.host_attributes(hostname)
            bundle = RangeBundle()
            if query_kind in (QueryKind.HOST, QueryKind.ALL):
                bundle.host = host
            if window is None:
                return bundle

            if query_kind is QueryKind.ALL:
                metric_kinds = list(MetricKind)
            else:
                metric_kinds = [MetricKind(query_kind.value)]

            host_ids = await self.registry.host_ids(hostname)
            for metric_kind in metric_kinds:
                records = await self.store.series_for_hosts(host_ids, metric_kind)
                setattr(bundle, metric_kind.value, filter_range(records, *window))
        return bundle
