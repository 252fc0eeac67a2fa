"""时间范围查询测试 — 半开区间、查询类型、时间解析、主机不存在。"""
from datetime import datetime, timezone, timedelta

import pytest
import pytest_asyncio

from hostmon.core.exceptions import BadRequestError, HostNotFoundError, InvalidRangeError
from hostmon.schemas.series import MetricKind
from hostmon.services.range_query import (
    QueryKind,
    RangeQueryEngine,
    filter_range,
    parse_query_kind,
    parse_timestamp,
    parse_window,
)
from hostmon.services.snapshot_codec import encode
from hostmon.services.timeseries_store import TimeSeriesStore

T1 = datetime(2025, 3, 11, 13, 13, 30, tzinfo=timezone.utc)
T2 = T1 + timedelta(seconds=1)


@pytest_asyncio.fixture
async def cpu_history(db_session, sample_host):
    """web01 在 T1 上报 percent=10，在 T2 上报 percent=20。"""
    store = TimeSeriesStore(db_session)
    await store.append_snapshot(sample_host.id, MetricKind.CPU, {"percent": 10}, T1)
    await store.append_snapshot(sample_host.id, MetricKind.CPU, {"percent": 20}, T2)
    await db_session.commit()
    return sample_host


class TestParsing:
    @pytest.mark.parametrize("value,expected", [
        ("cpu", QueryKind.CPU),
        ("Memory", QueryKind.MEMORY),
        ("net", QueryKind.NETWORK),
        ("network", QueryKind.NETWORK),
        ("all", QueryKind.ALL),
        (QueryKind.HOST, QueryKind.HOST),
    ])
    def test_query_kind(self, value, expected):
        assert parse_query_kind(value) is expected

    def test_unknown_query_kind(self):
        with pytest.raises(BadRequestError):
            parse_query_kind("disk")

    def test_timestamp_with_offset_normalized(self):
        assert parse_timestamp("2025-03-11T21:13:30+08:00", "from") == T1

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp("2025-03-11T13:13:30", "from") == T1

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2025-13-45T00:00:00Z"])
    def test_bad_timestamp(self, value):
        with pytest.raises(InvalidRangeError):
            parse_timestamp(value, "to")

    def test_from_after_to(self):
        with pytest.raises(InvalidRangeError):
            parse_window(T2, T1)

    def test_empty_window_allowed(self):
        assert parse_window(T1, T1) == (T1, T1)


class TestFilterRange:
    def test_lower_bound_inclusive_upper_exclusive(self):
        records = [encode({"n": 1}, T1), encode({"n": 2}, T2)]
        assert [r.data["n"] for r in filter_range(records, T1, T2)] == [1]

    def test_keeps_stored_order(self):
        records = [encode({"n": 2}, T2), encode({"n": 1}, T1)]
        assert [r.data["n"] for r in filter_range(records, T1, T2 + timedelta(seconds=1))] == [2, 1]

    def test_equal_bounds_match_nothing(self):
        assert filter_range([encode({"n": 1}, T1)], T1, T1) == []


class TestQueryRange:
    async def test_half_open_scenario(self, db_session, cpu_history):
        engine = RangeQueryEngine(db_session)

        bundle = await engine.query_range("web01", "cpu", T1, T2)
        assert [r.data for r in bundle.cpu] == [{"percent": 10}]

        bundle = await engine.query_range("web01", "cpu", T1, T2 + timedelta(seconds=1))
        assert [r.data for r in bundle.cpu] == [{"percent": 10}, {"percent": 20}]

    async def test_only_requested_kind_is_set(self, db_session, cpu_history):
        bundle = await RangeQueryEngine(db_session).query_range("web01", "cpu", T1, T2)
        assert bundle.host is None
        assert bundle.memory is None
        assert bundle.network is None

    async def test_accepts_rfc3339_strings(self, db_session, cpu_history):
        bundle = await RangeQueryEngine(db_session).query_range(
            "web01", "cpu", "2025-03-11T13:13:30Z", "2025-03-11T13:13:31Z"
        )
        assert len(bundle.cpu) == 1

    async def test_kind_without_data_is_empty(self, db_session, cpu_history):
        bundle = await RangeQueryEngine(db_session).query_range("web01", "net", T1, T2)
        assert bundle.network == []

    async def test_all_returns_every_part(self, db_session, cpu_history):
        bundle = await RangeQueryEngine(db_session).query_range("web01", "all", T1, T2 + timedelta(seconds=1))
        assert bundle.host.hostname == "web01"
        assert len(bundle.cpu) == 2
        assert bundle.memory == []
        assert bundle.process == []
        assert bundle.network == []

    async def test_host_query_needs_no_window(self, db_session, sample_host, host_token):
        bundle = await RangeQueryEngine(db_session).query_range("web01", "host")
        assert bundle.host.id == sample_host.id
        assert bundle.host.user_name == "alice"
        assert bundle.host.status == "offline"
        assert bundle.cpu is None

    @pytest.mark.parametrize("start,end", [("yesterday", None), (None, "2025-13-45T00:00:00Z")])
    async def test_host_query_rejects_malformed_bounds(self, db_session, sample_host, start, end):
        with pytest.raises(InvalidRangeError):
            await RangeQueryEngine(db_session).query_range("web01", "host", start, end)

    async def test_unknown_host(self, db_session):
        with pytest.raises(HostNotFoundError):
            await RangeQueryEngine(db_session).query_range("ghost", "cpu", T1, T2)

    async def test_range_checked_before_host_lookup(self, db_session):
        with pytest.raises(InvalidRangeError):
            await RangeQueryEngine(db_session).query_range("ghost", "cpu", T2, T1)

    async def test_metric_query_requires_window(self, db_session, cpu_history):
        with pytest.raises(InvalidRangeError):
            await RangeQueryEngine(db_session).query_range("web01", "cpu", T1, None)

    async def test_series_from_every_attribute_set(self, db_session, cpu_history):
        from hostmon.services.host_registry import HostRegistry

        registry = HostRegistry(db_session)
        new_id = await registry.upsert_host("web01", "linux", "debian", "x86_64")
        await TimeSeriesStore(db_session).append_snapshot(new_id, MetricKind.CPU, {"percent": 30}, T2)
        await db_session.commit()

        bundle = await RangeQueryEngine(db_session).query_range("web01", "cpu", T1, T2 + timedelta(seconds=1))
        assert [r.data["percent"] for r in bundle.cpu] == [10, 20, 30]
        assert bundle.host is None
