"""
快照编解码服务 (Snapshot Codec Service)

把一次指标读数和采集时间组合成 SnapshotRecord，并在存储表示（JSON 数组）与
有序的 SnapshotRecord 列表之间转换。解码失败一律抛出 CorruptSeriesError，
调用方不得静默丢弃。

Pairs a metric reading with its capture time as a SnapshotRecord and converts
between the stored representation (a JSON array) and an ordered list of
SnapshotRecords. Any decode failure raises CorruptSeriesError; callers must not
drop it silently.
"""
from datetime import datetime, timezone
from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError

from hostmon.core.exceptions import CorruptSeriesError
from hostmon.schemas.series import SnapshotRecord

_series_adapter = TypeAdapter(list[SnapshotRecord])


def encode(reading: Any, captured_at: datetime | None = None) -> SnapshotRecord:
    """读数 + 采集时间 → SnapshotRecord；未指定时间时取当前 UTC 时间。"""
    return SnapshotRecord(time=captured_at or datetime.now(timezone.utc), data=reading)


def decode_series(raw: Any) -> list[SnapshotRecord]:
    """
    解码已存储的序列 (Decode a stored series)

    Args:
        raw: JSON 文本/字节，或 JSON 列已解析出的 Python 值；None 或空串视为空序列

    Returns:
        list[SnapshotRecord]: 按存储顺序（追加顺序）排列的记录

    Raises:
        CorruptSeriesError: 不是合法 JSON、不是数组或元素缺少 time/data
    """
    if raw is None:
        return []
    try:
        if isinstance(raw, (bytes, bytearray, str)):
            if not raw.strip():
                return []
            return _series_adapter.validate_json(raw)
        return _series_adapter.validate_python(raw)
    except ValidationError as exc:
        raise CorruptSeriesError("Stored series is not decodable", detail=str(exc)) from exc


def encode_series(records: Sequence[SnapshotRecord]) -> list[dict]:
    """序列 → JSON 列可直接保存的列表。"""
    return _series_adapter.dump_python(list(records), mode="json")


def dump_series(records: Sequence[SnapshotRecord]) -> bytes:
    """序列 → JSON 字节串。"""
    return _series_adapter.dump_json(list(records))
