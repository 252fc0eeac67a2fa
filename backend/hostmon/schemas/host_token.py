"""
主机令牌请求/响应模型
"""
from datetime import datetime
from pydantic import BaseModel, Field


class HostTokenCreate(BaseModel):
    """创建主机静态令牌请求体。"""
    hostname: str = Field(min_length=1, max_length=255)


class HostTokenCreated(BaseModel):
    """创建成功响应，令牌只在此时返回一次。"""
    hostname: str
    token: str


class HostTokenResponse(BaseModel):
    """令牌绑定列表项，不包含令牌本身。"""
    id: int
    hostname: str
    status: str
    last_heartbeat: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
