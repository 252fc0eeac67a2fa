"""
主机指标路由模块 (Host Metrics Router)

功能说明：接收 Agent 上报的主机信息和四类指标，以及按时间范围查询已存储的时序数据
API端点：POST /api/v1/monitor, GET /api/v1/monitor/{hostname}
"""
import logging
from datetime import datetime, timezone

import redis.asyncio as redis
from redis.exceptions import RedisError
from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.agent_auth import authorize_submission
from hostmon.core.config import settings
from hostmon.core.database import get_db
from hostmon.core.deps import get_current_username
from hostmon.core.redis import get_redis, heartbeat_key
from hostmon.schemas.telemetry import SubmissionRequest, SubmissionResponse
from hostmon.services.ingestion import IngestionService
from hostmon.services.range_query import RangeQueryEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/monitor", tags=["monitor"])


@router.post("", response_model=SubmissionResponse, status_code=201)
async def receive_system_metrics(
    body: SubmissionRequest,
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
):
    """
    接收并保存主机上报 (Receive and store a host submission)

    流程：
        1. 校验静态令牌长度、静态令牌与绑定是否一致、Bearer 会话令牌
        2. 刷新心跳，查找或创建主机，追加携带的指标快照
        3. 写入 Redis 心跳键，供离线检测使用
    """
    principal = await authorize_submission(body.host_info, authorization, db)
    host_id, kinds = await IngestionService(db).ingest(body, principal)

    # 数据已提交，心跳缓存写入失败只记录警告，离线检测会回退到 last_heartbeat
    try:
        await redis_client.set(
            heartbeat_key(body.host_info.hostname),
            datetime.now(timezone.utc).isoformat(),
            ex=settings.heartbeat_ttl_seconds,
        )
    except RedisError as e:
        logger.warning("Heartbeat cache write failed for %s: %s", body.host_info.hostname, e)

    return SubmissionResponse(status="created", host_id=host_id, appended=[kind.value for kind in kinds])


@router.get("/{hostname}")
async def query_metrics(
    hostname: str,
    query_type: str = Query("all", alias="type"),
    start: str | None = Query(None, alias="from"),
    end: str | None = Query(None, alias="to"),
    username: str = Depends(get_current_username),
    db: AsyncSession = Depends(get_db),
):
    """
    按时间范围查询主机数据 (Query host data by time range)

    Args:
        hostname: 主机名
        query_type: host / cpu / memory / process / network(net) / all
        start: 区间下界（包含），RFC 3339
        end: 区间上界（不包含），RFC 3339
    Returns:
        dict: 只包含本次查询涉及的键
    """
    bundle = await RangeQueryEngine(db).query_range(hostname, query_type, start, end)
    payload = bundle.model_dump(mode="json")
    return {key: value for key, value in payload.items() if value is not None}
