"""
种子数据加载模块 (Seed Data Loading Module)

应用启动时从 JSON 文件导入示例主机、令牌绑定和时序数据，便于演示和联调。
仅在 host_tokens 表为空时执行，重复启动不会产生重复数据；整个导入在一个事务中完成，
任一序列无法通过快照解码校验时全部回滚。

Imports sample hosts, token bindings and series from a JSON file at startup for
demos and integration work. Runs only while host_tokens is empty, so restarts do
not duplicate data; the import is one transaction and rolls back entirely when
any series fails snapshot decoding.

文件格式 (File format)::

    {
      "host_tokens": [{"hostname": "web01", "token": "0123456789abcdef", "status": "offline"}],
      "hosts": [{"hostname": "web01", "os": "linux", "platform": "ubuntu",
                 "kernel_arch": "x86_64", "user_name": "root"}],
      "series": [{"hostname": "web01", "cpu_info": [{"time": "...Z", "data": {...}}]}]
    }
"""
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.exceptions import CorruptSeriesError
from hostmon.models.host import Host
from hostmon.models.host_token import HostToken
from hostmon.models.metric_series import MetricSeries
from hostmon.schemas.series import MetricKind
from hostmon.services.snapshot_codec import decode_series, encode_series

logger = logging.getLogger(__name__)


class SeedHostToken(BaseModel):
    hostname: str
    token: str
    status: str = "offline"


class SeedHost(BaseModel):
    hostname: str
    os: str
    platform: str
    kernel_arch: str
    user_name: str | None = None


class SeedSeries(BaseModel):
    hostname: str
    cpu_info: Any = None
    memory_info: Any = None
    process_info: Any = None
    network_info: Any = None


class SeedDocument(BaseModel):
    host_tokens: list[SeedHostToken] = []
    hosts: list[SeedHost] = []
    series: list[SeedSeries] = []


def read_seed_file(path: str | Path) -> SeedDocument:
    """读取并校验种子文件。"""
    with open(path, "r", encoding="utf-8") as f:
        return SeedDocument.model_validate(json.load(f))


async def load_seed_data(db: AsyncSession, document: SeedDocument) -> dict[str, int]:
    """
    导入种子数据 (Import seed data)

    Returns:
        dict[str, int]: 每类数据的导入条数；已有数据时全部为 0

    Raises:
        CorruptSeriesError: 某条序列无法解码
        ValueError: 序列引用了未在 hosts 中声明的主机名
    """
    counts = {"host_tokens": 0, "hosts": 0, "series": 0}
    existing = (await db.execute(select(func.count()).select_from(HostToken))).scalar()
    if existing:
        logger.info("Seed data skipped, %s token bindings already present", existing)
        return counts

    try:
        for item in document.host_tokens:
            db.add(HostToken(hostname=item.hostname, token=item.token, status=item.status))
            counts["host_tokens"] += 1

        host_ids: dict[str, int] = {}
        for item in document.hosts:
            host = Host(**item.model_dump())
            db.add(host)
            await db.flush()
            host_ids.setdefault(item.hostname, host.id)
            counts["hosts"] += 1

        for item in document.series:
            if item.hostname not in host_ids:
                raise ValueError(f"Seed series references undeclared host {item.hostname}")
            columns = {}
            for kind in MetricKind:
                try:
                    records = decode_series(getattr(item, kind.column))
                except CorruptSeriesError as exc:
                    raise CorruptSeriesError(
                        f"Seed {kind.value} series for {item.hostname} is not decodable",
                        detail=exc.detail,
                    ) from exc
                columns[kind.column] = encode_series(records)
            db.add(MetricSeries(host_id=host_ids[item.hostname], **columns))
            counts["series"] += 1

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Seed data loaded: %s", counts)
    return counts
