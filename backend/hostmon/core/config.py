"""
应用配置模块 (Application Configuration Module)

使用 Pydantic Settings 管理 hostmon 的所有配置项，支持从 .env 文件和环境变量读取。
涵盖数据库连接、Redis 心跳缓存、会话令牌、主机静态令牌和种子数据等配置。

Uses Pydantic Settings to manage every hostmon configuration item, read from .env
files and environment variables. Covers the database connection, the Redis heartbeat
cache, session tokens, static host tokens and seed data.
"""
import logging
import secrets

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    应用全局配置类 (Application Global Configuration Class)

    字段名自动映射同名环境变量（不区分大小写），支持 .env 文件加载。

    Field names map to same-named environment variables (case insensitive),
    with .env file loading.
    """

    # 数据库配置 (Database Configuration)
    postgres_host: str = "localhost"  # PostgreSQL 主机地址 (PostgreSQL Host)
    postgres_port: int = 5432  # PostgreSQL 端口号 (PostgreSQL Port)
    postgres_db: str = "monitor"  # 数据库名称 (Database Name)
    postgres_user: str = "postgres"  # 数据库用户名 (Database Username)
    postgres_password: str = "postgres"  # 数据库密码 (Database Password)
    database_url_override: str = ""  # 完整连接串，优先于上面的字段 (Full URL, wins over the fields above)

    # Redis 配置 (Redis Configuration)
    redis_host: str = "localhost"  # Redis 主机地址 (Redis Host)
    redis_port: int = 6379  # Redis 端口号 (Redis Port)
    redis_db: int = 0  # Redis 数据库编号 (Redis DB Index)

    # 会话令牌配置 (Session Token Configuration)
    # ⚠️ 生产环境必须通过环境变量 JWT_SECRET_KEY 设置！
    jwt_secret_key: str = ""  # JWT 签名密钥 (JWT Secret Key)
    jwt_algorithm: str = "HS256"  # JWT 算法 (JWT Algorithm)
    jwt_access_token_expire_minutes: int = 120  # 访问令牌过期时间（分钟） (Access Token Expiry Minutes)

    # 主机上报配置 (Host Submission Configuration)
    static_token_length: int = 16  # 主机静态令牌长度 (Static Host Token Length)
    heartbeat_ttl_seconds: int = 300  # 心跳超时时间（秒） (Heartbeat Timeout Seconds)
    offline_check_interval: int = 60  # 离线检测间隔（秒） (Offline Check Interval Seconds)

    # 启动配置 (Startup Configuration)
    seed_data_path: str = ""  # 种子数据 JSON 文件路径，为空则不加载 (Seed JSON path, empty disables loading)
    log_level: str = "INFO"  # 日志级别 (Log Level)

    @property
    def database_url(self) -> str:
        """
        构造 PostgreSQL 异步连接 URL (Build PostgreSQL Async Connection URL)

        设置了 DATABASE_URL_OVERRIDE 时直接使用该值，否则按 asyncpg 驱动拼接。
        """
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def redis_url(self) -> str:
        """构造 Redis 连接 URL (Build Redis Connection URL)"""
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# 全局配置实例 (Global Configuration Instance)
settings = Settings()

# 进程内随机生成的 JWT 密钥，签发的令牌无法被其它进程验证
jwt_secret_auto_generated = False

# JWT 密钥安全检查：未设置时生成随机密钥并警告
if not settings.jwt_secret_key:
    settings.jwt_secret_key = secrets.token_urlsafe(64)
    jwt_secret_auto_generated = True
    logger.warning(
        "JWT_SECRET_KEY not set, using auto-generated random key. "
        "All issued session tokens will be invalidated on restart."
    )
