"""
主机令牌管理路由

发放主机静态上报令牌、列出令牌绑定（不返回令牌本身）。
"""
import logging
import secrets

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.config import settings
from hostmon.core.database import get_db, storage_errors
from hostmon.core.deps import get_current_username
from hostmon.core.exceptions import ConflictError
from hostmon.models.host_token import HostToken
from hostmon.schemas.host_token import HostTokenCreate, HostTokenCreated, HostTokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/host-tokens", tags=["host-tokens"])


def generate_static_token(length: int) -> str:
    """生成指定长度的随机静态令牌。"""
    return secrets.token_urlsafe(length)[:length]


@router.post("", response_model=HostTokenCreated, status_code=201)
async def create_host_token(
    body: HostTokenCreate,
    username: str = Depends(get_current_username),
    db: AsyncSession = Depends(get_db),
):
    """为主机名发放静态令牌，令牌只在本次响应中返回。"""
    async with storage_errors("host token creation"):
        result = await db.execute(select(HostToken).where(HostToken.hostname == body.hostname))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(f"Host {body.hostname} already has a token")

        token = generate_static_token(settings.static_token_length)
        db.add(HostToken(hostname=body.hostname, token=token, status="offline"))
        await db.commit()

    logger.info("Issued static token for %s by %s", body.hostname, username)
    return HostTokenCreated(hostname=body.hostname, token=token)


@router.get("", response_model=list[HostTokenResponse])
async def list_host_tokens(
    username: str = Depends(get_current_username),
    db: AsyncSession = Depends(get_db),
):
    """列出全部令牌绑定及其在线状态。"""
    async with storage_errors("host token listing"):
        result = await db.execute(select(HostToken).order_by(HostToken.hostname))
        return result.scalars().all()
