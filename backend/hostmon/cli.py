"""
hostmon 命令行入口模块。

提供 CLI 命令：serve（运行 API 服务）、token（签发会话令牌）和 seed（导入种子数据）。
"""
import asyncio
import logging
import sys

import click

from hostmon.core.config import settings


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def cli(verbose):
    """hostmon - 主机指标采集服务。"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host, port):
    """以前台模式运行 API 服务。"""
    import uvicorn

    uvicorn.run("hostmon.main:app", host=host, port=port, log_level=settings.log_level.lower())


@cli.command()
@click.argument("username")
@click.option("--minutes", type=int, default=None, help="Token lifetime in minutes")
def token(username, minutes):
    """为 USERNAME 签发会话令牌，供 Agent 上报和查询使用。"""
    from hostmon.core import config
    from hostmon.core.security import create_access_token

    if config.jwt_secret_auto_generated:
        click.echo("Error: JWT_SECRET_KEY is not set, the server would reject this token", err=True)
        sys.exit(1)
    click.echo(create_access_token(username, expires_minutes=minutes))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def seed(path):
    """建表并从 PATH 导入种子数据（仅在令牌表为空时导入）。"""
    from hostmon.core.database import Base, create_engine, create_session_factory
    from hostmon.models import Host, HostToken, MetricSeries  # noqa: F401
    from hostmon.services.seed_loader import load_seed_data, read_seed_file

    document = read_seed_file(path)

    async def _run():
        engine = create_engine(settings.database_url)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            async with create_session_factory(engine)() as session:
                return await load_seed_data(session, document)
        finally:
            await engine.dispose()

    try:
        counts = asyncio.run(_run())
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(", ".join(f"{name}={count}" for name, count in counts.items()))


if __name__ == "__main__":
    cli()
