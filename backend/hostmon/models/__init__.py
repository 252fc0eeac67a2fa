"""
数据模型包 (Data Models Package)

集中导出所有 SQLAlchemy ORM 模型：主机、主机静态令牌绑定和主机时序数据。

Centrally exports every SQLAlchemy ORM model: hosts, static host token bindings
and per-host metric series.
"""
from hostmon.models.host import Host
from hostmon.models.host_token import HostToken
from hostmon.models.metric_series import MetricSeries

# 导出所有模型类供外部模块使用 (Export all model classes for external modules)
__all__ = ["Host", "HostToken", "MetricSeries"]
