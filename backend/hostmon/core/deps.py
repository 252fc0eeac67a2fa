"""
FastAPI 依赖项模块 (FastAPI Dependencies Module)

查询与令牌管理接口使用的会话令牌认证依赖。
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hostmon.core.agent_auth import username_from_session_token
from hostmon.core.exceptions import UnauthorizedError

# Bearer Token 认证方案，缺失时由本模块返回统一的 401 (Bearer scheme, missing header handled here)
security = HTTPBearer(auto_error=False)


async def get_current_username(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    从请求头中提取并验证会话令牌，返回用户名 (Validate the session token, return the username)
    """
    if credentials is None:
        raise UnauthorizedError("Authorization header is missing")
    return username_from_session_token(credentials.credentials)
