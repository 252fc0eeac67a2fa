"""
主机上报请求/响应模型

定义 Agent 上报的主机信息和四类指标的数据结构。CPU 与进程信息既可以是单个对象，
也可以是对象列表（多核 / 多进程）。
"""
from pydantic import BaseModel, Field


class HostInfo(BaseModel):
    """主机描述信息及静态上报令牌。"""
    hostname: str = Field(min_length=1, max_length=255)
    os: str
    platform: str
    kernel_arch: str
    token: str


class CPUInfo(BaseModel):
    """单个 CPU 的读数。"""
    model_name: str | None = None
    cores_num: int | None = None
    percent: float | None = None


class MemoryInfo(BaseModel):
    """内存读数，容量字段保留 Agent 上报的原始字符串。"""
    total: str | None = None
    available: str | None = None
    used: str | None = None
    free: str | None = None
    user_percent: float | None = None


class ProcessInfo(BaseModel):
    """单个进程的读数。"""
    pid: int | None = None
    cpu_percent: float | None = None
    mem_percent: float | None = None
    cmdline: str | None = None


class NetworkInfo(BaseModel):
    """网卡流量读数（累计字节数）。"""
    name: str | None = None
    bytes_recv: int | None = Field(default=None, ge=0)
    bytes_sent: int | None = Field(default=None, ge=0)


class SubmissionRequest(BaseModel):
    """Agent 上报请求体，四类指标均可缺省，缺省的指标序列保持不变。"""
    host_info: HostInfo
    cpu_info: CPUInfo | list[CPUInfo] | None = None
    mem_info: MemoryInfo | None = None
    pro_info: ProcessInfo | list[ProcessInfo] | None = None
    net_info: NetworkInfo | list[NetworkInfo] | None = None


class SubmissionResponse(BaseModel):
    """上报成功响应体。"""
    status: str
    host_id: int
    appended: list[str]  # 本次追加的指标类型
