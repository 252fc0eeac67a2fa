"""
主机相关响应模型

定义主机属性查询和时间范围查询结果的数据结构。
"""
from datetime import datetime
from pydantic import BaseModel


class HostResponse(BaseModel):
    """主机基本信息响应体，附带令牌绑定上的在线状态。"""
    id: int
    hostname: str
    os: str
    platform: str
    kernel_arch: str
    user_name: str | None = None
    status: str | None = None
    last_heartbeat: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
