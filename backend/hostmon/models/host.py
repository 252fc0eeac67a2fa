"""
主机模型 (Host Model)

定义被监控主机的表结构，记录主机名、操作系统、平台、内核架构和所属用户。
主机身份由 (hostname, os, platform, kernel_arch) 四元组确定：同一主机名在重装系统后
会以新的 id 出现。

Defines the table structure for monitored hosts: hostname, operating system,
platform, kernel architecture and owning user. Host identity is the
(hostname, os, platform, kernel_arch) tuple, so a hostname that is reimaged
shows up under a new id.
"""
from datetime import datetime

from sqlalchemy import String, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from hostmon.core.database import Base


class Host(Base):
    """
    主机表 (Host Table)

    每次成功上报都会按四元组查找或创建一行，命中时只刷新 updated_at。

    A row is found or created by the attribute tuple on every accepted
    submission; a hit only refreshes updated_at.
    """
    __tablename__ = "hosts"
    __table_args__ = (
        UniqueConstraint("hostname", "os", "platform", "kernel_arch", name="uq_hosts_identity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    hostname: Mapped[str] = mapped_column(String(255), nullable=False, index=True)  # 主机名称 (Hostname)
    os: Mapped[str] = mapped_column(String(100), nullable=False)  # 操作系统 (Operating System)
    platform: Mapped[str] = mapped_column(String(100), nullable=False)  # 发行版平台 (Platform)
    kernel_arch: Mapped[str] = mapped_column(String(50), nullable=False)  # 内核架构，如 x86_64 (Kernel Architecture)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)  # 所属用户 (Owning User)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )  # 创建时间 (Creation Time)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )  # 更新时间 (Update Time)
