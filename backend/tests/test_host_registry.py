"""主机注册服务测试 — 查找或创建、心跳刷新、按主机名读取。"""
import pytest
from sqlalchemy import func, select

from hostmon.core.exceptions import HostNotFoundError
from hostmon.models.host import Host
from hostmon.models.host_token import HostToken
from hostmon.services.host_registry import HostRegistry


async def _host_count(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(Host))).scalar()


class TestUpsertHost:
    async def test_creates_new_host(self, db_session):
        registry = HostRegistry(db_session)
        host_id = await registry.upsert_host("web01", "linux", "ubuntu", "x86_64", user_name="alice")
        await db_session.commit()

        host = await db_session.get(Host, host_id)
        assert host.hostname == "web01"
        assert host.user_name == "alice"

    async def test_same_tuple_returns_same_id(self, db_session):
        registry = HostRegistry(db_session)
        first = await registry.upsert_host("web01", "linux", "ubuntu", "x86_64")
        second = await registry.upsert_host("web01", "linux", "ubuntu", "x86_64")
        await db_session.commit()

        assert first == second
        assert await _host_count(db_session) == 1

    async def test_changed_attribute_creates_new_host(self, db_session):
        registry = HostRegistry(db_session)
        first = await registry.upsert_host("web01", "linux", "ubuntu", "x86_64")
        second = await registry.upsert_host("web01", "linux", "ubuntu", "aarch64")
        await db_session.commit()

        assert first != second
        assert await _host_count(db_session) == 2

    async def test_match_keeps_owner(self, db_session, sample_host):
        registry = HostRegistry(db_session)
        host_id = await registry.upsert_host("web01", "linux", "ubuntu", "x86_64", user_name="bob")
        await db_session.commit()

        assert host_id == sample_host.id
        await db_session.refresh(sample_host)
        assert sample_host.user_name == "alice"


class TestTouchHeartbeat:
    async def test_marks_binding_online(self, db_session, host_token):
        assert host_token.last_heartbeat is None
        assert await HostRegistry(db_session).touch_heartbeat("web01") is True
        await db_session.commit()

        await db_session.refresh(host_token)
        assert host_token.status == "online"
        assert host_token.last_heartbeat is not None

    async def test_missing_binding_is_noop(self, db_session):
        assert await HostRegistry(db_session).touch_heartbeat("ghost") is False
        count = (await db_session.execute(select(func.count()).select_from(HostToken))).scalar()
        assert count == 0


class TestLookup:
    async def test_get_host(self, db_session, sample_host):
        host = await HostRegistry(db_session).get_host("web01")
        assert host.id == sample_host.id

    async def test_get_unknown_host(self, db_session):
        with pytest.raises(HostNotFoundError):
            await HostRegistry(db_session).get_host("ghost")

    async def test_host_ids_cover_every_attribute_set(self, db_session):
        registry = HostRegistry(db_session)
        first = await registry.upsert_host("web01", "linux", "ubuntu", "x86_64")
        second = await registry.upsert_host("web01", "linux", "debian", "x86_64")
        await registry.upsert_host("db01", "linux", "ubuntu", "x86_64")
        await db_session.commit()

        assert await registry.host_ids("web01") == [first, second]
        assert await registry.host_ids("ghost") == []

    async def test_get_binding(self, db_session, host_token):
        registry = HostRegistry(db_session)
        binding = await registry.get_binding("web01")
        assert binding.id == host_token.id
        assert await registry.get_binding("ghost") is None
