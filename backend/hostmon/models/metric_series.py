"""
主机时序模型 (Metric Series Model)

每台主机一行，四个 JSON 数组列分别保存 CPU、内存、进程和网络快照序列。
每个数组元素形如 {"time": "...Z", "data": {...}}，只追加不修改。

One row per host; four JSON array columns hold the CPU, memory, process and
network snapshot sequences. Every element looks like {"time": "...Z", "data": {...}}
and is only ever appended.
"""
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from hostmon.core.database import Base


class MetricSeries(Base):
    """
    主机时序表 (Metric Series Table)

    历史上同一主机可能存在多行，读取最新序列时按 updated_at 取最新一行。

    Historical data may hold several rows per host; the latest series is the row
    with the newest updated_at.
    """
    __tablename__ = "metric_series"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    host_id: Mapped[int] = mapped_column(Integer, ForeignKey("hosts.id"), index=True, nullable=False)  # 主机 ID (Host ID)
    cpu_info: Mapped[list | None] = mapped_column(JSON, nullable=True)  # CPU 快照序列 (CPU Snapshots)
    memory_info: Mapped[list | None] = mapped_column(JSON, nullable=True)  # 内存快照序列 (Memory Snapshots)
    process_info: Mapped[list | None] = mapped_column(JSON, nullable=True)  # 进程快照序列 (Process Snapshots)
    network_info: Mapped[list | None] = mapped_column(JSON, nullable=True)  # 网络快照序列 (Network Snapshots)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )  # 最后追加时间 (Last Append Time)
