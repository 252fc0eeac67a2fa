"""
时序快照模型 (Snapshot Series Models)

定义指标类型、单条快照记录和范围查询结果。快照记录一经追加不可修改，
time 统一为 UTC，序列化为带 Z 后缀的 RFC 3339 字符串。

Defines metric kinds, the single snapshot record and the range query bundle.
Snapshot records are immutable once appended; time is always UTC and serialized
as an RFC 3339 string with a Z suffix.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, field_serializer, field_validator

from hostmon.schemas.host import HostResponse


class MetricKind(str, Enum):
    """四类主机指标 (The four host metric kinds)"""
    CPU = "cpu"
    MEMORY = "memory"
    PROCESS = "process"
    NETWORK = "network"

    @property
    def column(self) -> str:
        """对应 metric_series 表中的 JSON 列名。"""
        return _SERIES_COLUMNS[self]


_SERIES_COLUMNS = {
    MetricKind.CPU: "cpu_info",
    MetricKind.MEMORY: "memory_info",
    MetricKind.PROCESS: "process_info",
    MetricKind.NETWORK: "network_info",
}


class SnapshotRecord(BaseModel):
    """单条快照：采集时间 + 指标原始读数。"""
    time: datetime
    data: Any

    model_config = {"frozen": True}

    @field_validator("time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # 无时区的时间按 UTC 处理
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_serializer("time")
    def _rfc3339(self, value: datetime) -> str:
        return value.isoformat().replace("+00:00", "Z")


class RangeBundle(BaseModel):
    """范围查询结果，只包含本次查询涉及的部分。"""
    host: HostResponse | None = None
    cpu: list[SnapshotRecord] | None = None
    memory: list[SnapshotRecord] | None = None
    process: list[SnapshotRecord] | None = None
    network: list[SnapshotRecord] | None = None
