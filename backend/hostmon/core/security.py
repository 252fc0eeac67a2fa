"""
会话令牌模块 (Session Token Module)

生成与解析主机上报和查询接口使用的 JWT 会话令牌。令牌载荷中的 sub 即用户名，
上报成功后记录为主机的所属用户。

Issues and parses the JWT session tokens used by the submission and query
endpoints. The payload's sub claim is the username, recorded as the owning user
of hosts registered through a submission.
"""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from hostmon.core.config import settings


def create_access_token(username: str, expires_minutes: int | None = None) -> str:
    """
    生成访问令牌 (Generate access token)

    Args:
        username (str): 用户名，写入 sub 声明 (Username, stored in the sub claim)
        expires_minutes (int | None): 覆盖默认有效期 (Override the default lifetime)

    Returns:
        str: JWT 访问令牌字符串 (JWT access token string)
    """
    minutes = settings.jwt_access_token_expire_minutes if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(
        {"sub": username, "exp": expire, "type": "access"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict | None:
    """
    解析 JWT 令牌，失败返回 None (Decode JWT token, return None on failure)

    令牌格式错误、签名无效或已过期时返回 None。
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
