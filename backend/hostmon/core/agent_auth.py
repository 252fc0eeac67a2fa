"""
主机上报鉴权模块

校验上报请求携带的主机静态令牌和 Bearer 会话令牌，返回通过鉴权的主体。
校验顺序：静态令牌长度（不访问存储）→ 静态令牌与绑定比对 → Authorization 头格式
→ 会话令牌签名与有效期。
"""
import hmac
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hostmon.core.config import settings
from hostmon.core.database import storage_errors
from hostmon.core.exceptions import BadRequestError, UnauthorizedError
from hostmon.core.security import decode_token
from hostmon.models.host_token import HostToken
from hostmon.schemas.telemetry import HostInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentPrincipal:
    """通过鉴权的上报主体。"""
    username: str
    hostname: str


def parse_bearer(authorization: str | None) -> str:
    """从 Authorization 头中提取 Bearer 令牌（格式为 "Bearer <token>"）。"""
    if not authorization:
        raise UnauthorizedError("Authorization header is missing")
    scheme, _, credentials = authorization.partition(" ")
    if scheme != "Bearer" or not credentials.strip():
        raise UnauthorizedError("Invalid token format")
    return credentials.strip()


def username_from_session_token(token: str) -> str:
    """校验会话令牌并返回其中的用户名。"""
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedError("Invalid or expired token")
    return str(payload["sub"])


async def authorize_submission(
    host_info: HostInfo,
    authorization: str | None,
    db: AsyncSession,
) -> AgentPrincipal:
    """校验一次主机上报，失败时抛出 BadRequestError / UnauthorizedError。"""
    if len(host_info.token) != settings.static_token_length:
        logger.warning("Rejected submission from %s: wrong token length", host_info.hostname)
        raise BadRequestError("Wrong token length")

    async with storage_errors("token lookup"):
        result = await db.execute(select(HostToken.token).where(HostToken.hostname == host_info.hostname))
        expected = result.scalar_one_or_none()
    if expected is None or not hmac.compare_digest(expected.encode(), host_info.token.encode()):
        logger.warning("Rejected submission from %s: static token mismatch", host_info.hostname)
        raise UnauthorizedError("Static token mismatch")

    username = username_from_session_token(parse_bearer(authorization))
    return AgentPrincipal(username=username, hostname=host_info.hostname)
