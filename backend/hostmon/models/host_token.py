"""
主机令牌模型 (Host Token Model)

主机名到静态上报令牌的绑定，同时记录主机在线状态和最后心跳时间。
每次通过鉴权的上报都会把状态置为 online 并刷新心跳。
"""
from datetime import datetime

from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from hostmon.core.database import Base


class HostToken(Base):
    """主机令牌表，hostname 唯一。"""
    __tablename__ = "host_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    hostname: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="offline")  # online / offline
    last_heartbeat: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
